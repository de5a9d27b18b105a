"""Pydantic models for the prescription data carried into an HL7v2 message."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Union

from pydantic import BaseModel, Field

# A diagnosis is either a bare code or a (code, description) pair
Diagnosis = Union[str, tuple[str, str]]


class PatientInfo(BaseModel):
    """Patient demographics, measurements and clinical history."""

    patient_id: str = Field(..., description="Patient MRN or identifier")
    name: str = Field(..., description="Full name, given name first")
    date_of_birth: date
    gender: str = Field(..., description="HL7 administrative sex code (M/F/U/...)")
    weight_kg: float | None = None
    height_cm: float | None = None
    allergies: list[str] = Field(default_factory=list)
    diagnoses: list[Diagnosis] = Field(default_factory=list, description="ICD-10 codes")


class PrescribingProvider(BaseModel):
    """The clinician issuing the prescription."""

    id: str
    name: str
    qualification: str | None = None
    specialty: str | None = None
    contact: str | None = None
    address: str | None = None


class PharmacyInfo(BaseModel):
    """The pharmacy the prescription is routed to."""

    id: str
    name: str
    address: str | None = None
    contact: str | None = None


class MedicationItem(BaseModel):
    """One prescribed medication line."""

    medication_code: str
    medication_name: str
    form: str = Field(..., description="Dosage form code, e.g. TAB")
    strength: str = Field(..., description="Free-text strength, e.g. '10 mg'")
    quantity: float
    unit: str
    dosage_instruction: str
    route: str = Field(..., description="HL7 table 0162 route code")
    duration_days: int | None = None
    refills: int | None = None
    special_instructions: str | None = None
    substitution_allowed: bool = True
    frequency: str | None = None
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None


class PrescriptionInfo(BaseModel):
    """Envelope data for the prescription as a whole."""

    prescription_id: str
    prescription_date: date
    urgent: bool = False
    validity_days: int | None = None
    payment_type: str | None = None
    insurance_info: dict[str, Any] | None = None
    clinical_notes: str | None = None
    dispense_as_written: bool = False


class PrescriptionBundle(BaseModel):
    """Everything needed to build one prescription message."""

    patient: PatientInfo
    provider: PrescribingProvider
    pharmacy: PharmacyInfo
    medications: list[MedicationItem] = Field(default_factory=list)
    prescription: PrescriptionInfo
