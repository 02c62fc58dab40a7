"""FHIR resource providers."""
