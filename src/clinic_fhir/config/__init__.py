"""Configuration module for the Clinic FHIR API."""

from clinic_fhir.config.base import Settings
from clinic_fhir.config.loader import get_settings

__all__ = ["Settings", "get_settings"]
