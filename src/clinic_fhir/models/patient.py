"""Patient and patient identifier type models."""

from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, SoftDeleteMixin, TimestampMixin


class PatientIdentifierType(BaseModel, TimestampMixin):
    """A kind of patient identifier, e.g. a national id or medical record number."""

    __tablename__ = "patient_identifier_type"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    fhir_identifier_system: Mapped[Optional["FhirPatientIdentifierSystem"]] = (
        relationship(back_populates="patient_identifier_type", uselist=False)
    )


class FhirPatientIdentifierSystem(BaseModel):
    """Canonical FHIR system URL configured for a patient identifier type."""

    __tablename__ = "fhir_patient_identifier_system"

    patient_identifier_type_id: Mapped[int] = mapped_column(
        ForeignKey("patient_identifier_type.id"), nullable=False, unique=True
    )
    url: Mapped[str] = mapped_column(String(255), nullable=False)

    patient_identifier_type: Mapped[PatientIdentifierType] = relationship(
        back_populates="fhir_identifier_system"
    )


class Patient(BaseModel, TimestampMixin, SoftDeleteMixin):
    """Patient demographics needed to render references."""

    __tablename__ = "patient"

    given_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    family_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    identifier: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )
    identifier_type_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("patient_identifier_type.id"), nullable=True
    )

    identifier_type: Mapped[Optional[PatientIdentifierType]] = relationship()

    @property
    def display_name(self) -> str:
        """Given and family name joined by a space."""
        return " ".join(n for n in (self.given_name, self.family_name) if n)
