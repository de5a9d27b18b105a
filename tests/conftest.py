"""Shared pytest fixtures and test markers.

Test tiers
----------
  unit        Fast, fully offline, pure functions and single classes.

  integration Record -> mapper -> message -> response reader, end to end.

  quality     Deep validation: HL7 field-level checks with python-hl7 and
              property-based tests (Hypothesis).

Run specific tiers:
  pytest tests/unit tests/integration    # fast
  pytest tests/quality                   # deep validation
  pytest tests/ -v                       # everything
"""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone

import pytest

from hl7_prescription.config import HL7Config
from hl7_prescription.hl7.assembler import MessageAssembler
from hl7_prescription.models import MedicationItem, PatientInfo, PrescribingProvider

FIXED_NOW = datetime(2024, 12, 10, 9, 30, 15, 123456, tzinfo=timezone.utc)
FIXED_TS = "20241210093015"


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------

def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast offline unit tests")
    config.addinivalue_line("markers", "integration: record-to-message flow tests")
    config.addinivalue_line("markers", "quality: HL7 deep-validation and property-based tests")


# ---------------------------------------------------------------------------
# Clock / config / assembler
# ---------------------------------------------------------------------------

def fixed_clock() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock():
    return fixed_clock


@pytest.fixture
def config() -> HL7Config:
    return HL7Config(
        sending_application="EDIFACT_CONVERTER",
        sending_facility="HOSPITAL_XYZ",
        receiving_application="PHARMACY_SYSTEM",
        receiving_facility="PHARMACY_ABC",
    )


@pytest.fixture
def assembler(config: HL7Config) -> MessageAssembler:
    return MessageAssembler(config, clock=fixed_clock)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def patient() -> PatientInfo:
    return PatientInfo(
        patient_id="PAT123456789",
        name="John Doe",
        date_of_birth=date(1980, 5, 15),
        gender="M",
        weight_kg=85.5,
        height_cm=180.0,
        allergies=["Penicillin", "Sulfa drugs"],
        diagnoses=["I10", "E11.9"],
    )


@pytest.fixture
def provider() -> PrescribingProvider:
    return PrescribingProvider(
        id="DOC987654321",
        name="Dr. Jane Smith",
        qualification="MD",
        specialty="Internal Medicine",
    )


@pytest.fixture
def lisinopril() -> MedicationItem:
    return MedicationItem(
        medication_code="C09AA01",
        medication_name="Lisinopril",
        form="TAB",
        strength="10 mg",
        quantity=30,
        unit="TAB",
        dosage_instruction="Take 1 tablet once daily in the morning",
        route="PO",
        duration_days=30,
        refills=3,
        special_instructions="Take with food if stomach upset occurs",
        substitution_allowed=True,
        frequency="QD",
    )


_PRESCRIPTION_RECORD = {
    "message_ref": "MED0001",
    "prescription_id": "RX2025-0509-001",
    "prescription_date": "20241210",
    "urgent": False,
    "validity_days": 30,
    "payment_type": "INSURANCE",
    "insurance_info": {"id": "INS123456789", "name": "HealthCare Plus"},
    "dispense_as_written": False,
    "clinical_notes": (
        "Patient has history of mild hypertension. "
        "Monitor blood pressure during treatment."
    ),
    "prescribing_doctor": {
        "id": "DOC987654321",
        "name": "Dr. Jane Smith",
        "qualification": "MD",
        "specialty": "Internal Medicine",
        "contact": "+1-555-123-4567",
        "address": "123 Medical Center, Suite 100",
    },
    "patient": {
        "patient_id": "PAT123456789",
        "name": "John Doe",
        "date_of_birth": "19800515",
        "gender": "M",
        "weight_kg": "85.5",
        "height_cm": "180.0",
        "allergies": ["Penicillin", "Sulfa drugs"],
        "diagnoses": ["I10", "E11.9"],
    },
    "pharmacy": {
        "id": "PHARM12345",
        "name": "City Pharmacy",
        "address": "456 Main Street",
        "contact": "+1-555-987-6543",
    },
    "items": [
        {
            "medication_code": "C09AA01",
            "medication_name": "Lisinopril",
            "form": "TAB",
            "strength": "10 mg",
            "quantity": "30",
            "unit": "TAB",
            "dosage_instruction": "Take 1 tablet once daily in the morning",
            "route": "PO",
            "duration_days": 30,
            "refills": 3,
            "special_instructions": "Take with food if stomach upset occurs",
            "substitution_allowed": True,
        }
    ],
}


@pytest.fixture
def prescription_record() -> dict:
    """A deep copy of the demo record, safe to mutate per test."""
    return copy.deepcopy(_PRESCRIPTION_RECORD)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def segment_lines(message: str, segment_id: str) -> list[str]:
    return [s for s in message.split("\r") if s.startswith(segment_id + "|")]


def fields_of(line: str) -> list[str]:
    """Split a non-MSH segment so that ``fields[n]`` is field n."""
    return line.split("|")
