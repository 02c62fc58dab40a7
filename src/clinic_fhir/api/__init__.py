"""FHIR REST API for the Clinic FHIR server."""
