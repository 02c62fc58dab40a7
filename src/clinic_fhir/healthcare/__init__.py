"""FHIR search, paging and outcome building blocks."""
