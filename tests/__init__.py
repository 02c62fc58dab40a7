"""Clinic FHIR test suite."""
