"""Translators between stored records and FHIR resources."""
