"""Example: convert a prescription record into an HL7v2 RDE^O11 message.

Usage:
    python examples/generate_prescription.py [output.hl7]

Sender/receiver names can be overridden with HL7_* environment variables,
e.g. HL7_SENDING_FACILITY=HOSPITAL_XYZ.
"""

from __future__ import annotations

import sys
from collections import Counter
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from loguru import logger

from hl7_prescription import HL7Config, HL7BuildError, PrescriptionMapper, parse_response


PRESCRIPTION = {
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
    },
    "patient": {
        "patient_id": "PAT123456789",
        "name": "John Doe",
        "date_of_birth": "19800515",
        "gender": "M",
        "weight_kg": 85.5,
        "height_cm": 180.0,
        "allergies": ["Penicillin", "Sulfa drugs"],
        "diagnoses": ["I10", "E11.9"],
    },
    "pharmacy": {
        "id": "PHARM12345",
        "name": "City Pharmacy",
        "address": "456 Main Street",
    },
    "items": [
        {
            "medication_code": "C09AA01",
            "medication_name": "Lisinopril",
            "form": "TAB",
            "strength": "10 mg",
            "quantity": 30,
            "unit": "TAB",
            "dosage_instruction": "Take 1 tablet once daily in the morning",
            "route": "PO",
            "duration_days": 30,
            "refills": 3,
            "special_instructions": "Take with food if stomach upset occurs",
        }
    ],
}


def main() -> None:
    logger.remove()
    logger.add(sys.stderr, level="INFO")

    output = Path(sys.argv[1] if len(sys.argv) > 1 else "prescription.hl7")
    config = HL7Config.from_environment()

    print("=== HL7v2 Prescription Message Demo ===\n")

    try:
        message = PrescriptionMapper.convert(PRESCRIPTION, config)
    except HL7BuildError as exc:
        logger.error(f"Could not build message: {exc}")
        sys.exit(1)

    # Segments are \r-delimited on the wire; show one per line
    print(message.replace("\r", "\n"))
    print()

    output.write_text(message, encoding=config.charset.lower())
    print(f"Written to {output}")

    summary = parse_response(message)
    print(f"\nMessage type: {summary.message_type}")
    print(f"Control id:   {summary.message_control_id}")
    print("Segments:")
    for segment_id, count in Counter(summary.segments).items():
        print(f"  {segment_id}: {count}")


if __name__ == "__main__":
    main()
