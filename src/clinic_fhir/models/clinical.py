"""Clinical models backing the MedicationRequest resource."""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import BaseModel, SoftDeleteMixin, TimestampMixin
from .patient import Patient


class Practitioner(BaseModel, TimestampMixin, SoftDeleteMixin):
    """A clinician who can order medications."""

    __tablename__ = "practitioner"

    given_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    family_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    identifier: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )

    @property
    def display_name(self) -> str:
        """Given and family name joined by a space."""
        return " ".join(n for n in (self.given_name, self.family_name) if n)


class Encounter(BaseModel, TimestampMixin, SoftDeleteMixin):
    """A patient visit during which orders are placed."""

    __tablename__ = "encounter"

    patient_id: Mapped[int] = mapped_column(ForeignKey("patient.id"), nullable=False)
    encounter_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    encounter_datetime: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    patient: Mapped[Patient] = relationship()


class Drug(BaseModel, TimestampMixin, SoftDeleteMixin):
    """A formulary drug, exposed as a FHIR Medication."""

    __tablename__ = "drug"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class DrugOrder(BaseModel, TimestampMixin, SoftDeleteMixin):
    """An order for a drug, exposed as a FHIR MedicationRequest."""

    __tablename__ = "drug_order"

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    intent: Mapped[str] = mapped_column(String(20), nullable=False, default="order")
    priority: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    patient_id: Mapped[int] = mapped_column(ForeignKey("patient.id"), nullable=False)
    orderer_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("practitioner.id"), nullable=True
    )
    encounter_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("encounter.id"), nullable=True
    )
    drug_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("drug.id"), nullable=True
    )

    concept_system: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    concept_code: Mapped[Optional[str]] = mapped_column(
        String(50), nullable=True, index=True
    )
    concept_display: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    dosing_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    date_activated: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    patient: Mapped[Patient] = relationship()
    orderer: Mapped[Optional[Practitioner]] = relationship()
    encounter: Mapped[Optional[Encounter]] = relationship()
    drug: Mapped[Optional[Drug]] = relationship()
