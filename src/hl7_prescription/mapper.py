"""Map a structured prescription record onto an HL7v2 pharmacy order message.

The record is a plain dict, e.g.::

    {
        "prescription_id": "RX2025-0509-001",
        "prescription_date": "20241210",
        "prescribing_doctor": {"id": "DOC987654321", "name": "Dr. Jane Smith"},
        "patient": {"patient_id": "PAT123456789", "name": "John Doe",
                    "date_of_birth": "19800515", "gender": "M"},
        "pharmacy": {"id": "PHARM12345", "name": "City Pharmacy"},
        "items": [{"medication_code": "C09AA01", "medication_name": "Lisinopril", ...}],
    }
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Sequence

from loguru import logger
from pydantic import ValidationError

from .config import HL7Config
from .exceptions import HL7BuildError, MissingFieldError
from .hl7.assembler import Clock, MessageAssembler
from .hl7.encoding import DEFAULT_ENCODING, EncodingProfile
from .models import (
    Diagnosis,
    MedicationItem,
    PatientInfo,
    PharmacyInfo,
    PrescribingProvider,
    PrescriptionBundle,
    PrescriptionInfo,
)

_REQUIRED_FIELDS = (
    "prescription_id",
    "prescription_date",
    "prescribing_doctor.id",
    "prescribing_doctor.name",
    "patient.patient_id",
    "patient.name",
    "patient.date_of_birth",
    "patient.gender",
    "pharmacy.id",
    "pharmacy.name",
    "items",
)

_REQUIRED_ITEM_FIELDS = (
    "medication_code",
    "medication_name",
    "form",
    "strength",
    "quantity",
    "dosage_instruction",
    "route",
)

DEFAULT_FREQUENCY = "QD"

# HL7 TS precisions accepted for medication start/end times, keyed by length
_HL7_DATETIME_FORMATS = {
    8: "%Y%m%d",
    12: "%Y%m%d%H%M",
    14: "%Y%m%d%H%M%S",
}


class PrescriptionMapper:
    """Turn prescription records into HL7v2 message text."""

    @classmethod
    def convert(
        cls,
        record: Mapping[str, Any],
        config: HL7Config | None = None,
        encoding: EncodingProfile = DEFAULT_ENCODING,
        clock: Clock | None = None,
    ) -> str:
        """Map ``record`` and build its message in one step."""
        return cls.build_message(cls.from_record(record), config, encoding, clock)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> PrescriptionBundle:
        """Validate presence of required fields and build the domain models.

        Identifiers are stored as text, so numeric ids in the record are
        accepted.

        Raises:
            MissingFieldError: naming the first absent required field, before
                any model is built.
            HL7BuildError: when a present value cannot be read, e.g. a
                malformed date or a non-numeric quantity.
        """
        _check_required(record)
        try:
            bundle = cls._bundle(record)
        except ValidationError as exc:
            raise HL7BuildError(f"invalid prescription record: {exc}") from exc
        logger.info(
            f"Mapped prescription {bundle.prescription.prescription_id} "
            f"with {len(bundle.medications)} medication(s)"
        )
        return bundle

    @classmethod
    def _bundle(cls, record: Mapping[str, Any]) -> PrescriptionBundle:
        patient = record["patient"]
        doctor = record["prescribing_doctor"]
        pharmacy = record["pharmacy"]

        return PrescriptionBundle(
            patient=PatientInfo(
                patient_id=str(patient["patient_id"]),
                name=patient["name"],
                date_of_birth=_parse_date(patient["date_of_birth"], "patient.date_of_birth"),
                gender=patient["gender"],
                weight_kg=patient.get("weight_kg"),
                height_cm=patient.get("height_cm"),
                allergies=list(patient.get("allergies") or []),
                diagnoses=[_diagnosis(d) for d in patient.get("diagnoses") or []],
            ),
            provider=PrescribingProvider(
                id=str(doctor["id"]),
                name=doctor["name"],
                qualification=doctor.get("qualification"),
                specialty=doctor.get("specialty"),
                contact=doctor.get("contact"),
                address=doctor.get("address"),
            ),
            pharmacy=PharmacyInfo(
                id=str(pharmacy["id"]),
                name=pharmacy["name"],
                address=pharmacy.get("address"),
                contact=pharmacy.get("contact"),
            ),
            medications=[
                cls._medication(item, index) for index, item in enumerate(record["items"])
            ],
            prescription=PrescriptionInfo(
                prescription_id=str(record["prescription_id"]),
                prescription_date=_parse_date(record["prescription_date"], "prescription_date"),
                urgent=record.get("urgent", False),
                validity_days=record.get("validity_days"),
                payment_type=record.get("payment_type"),
                insurance_info=record.get("insurance_info"),
                clinical_notes=record.get("clinical_notes"),
                dispense_as_written=record.get(
                    "dispense_as_written", not record.get("substitution_allowed", True)
                ),
            ),
        )

    @staticmethod
    def _medication(item: Mapping[str, Any], index: int) -> MedicationItem:
        prefix = f"items[{index}]"
        return MedicationItem(
            medication_code=str(item["medication_code"]),
            medication_name=item["medication_name"],
            form=item["form"],
            strength=item["strength"],
            quantity=item["quantity"],
            unit=item.get("unit") or item["form"],
            dosage_instruction=item["dosage_instruction"],
            route=item["route"],
            duration_days=item.get("duration_days"),
            refills=item.get("refills"),
            special_instructions=item.get("special_instructions"),
            substitution_allowed=item.get("substitution_allowed", True),
            frequency=item.get("frequency", DEFAULT_FREQUENCY),
            start_datetime=_parse_datetime(item.get("start_datetime"), f"{prefix}.start_datetime"),
            end_datetime=_parse_datetime(item.get("end_datetime"), f"{prefix}.end_datetime"),
        )

    @classmethod
    def build_message(
        cls,
        bundle: PrescriptionBundle,
        config: HL7Config | None = None,
        encoding: EncodingProfile = DEFAULT_ENCODING,
        clock: Clock | None = None,
    ) -> str:
        """Build the message for ``bundle``.

        Segment order is fixed: MSH, PID (+OBX), PV1, ORC, DG1*, AL1*, NTE,
        then RXE + RXR per medication, each followed by an RXD when the
        configured variant is RDE^O11.
        """
        builder = MessageAssembler(config, encoding, clock)
        patient = bundle.patient
        prescription = bundle.prescription

        builder.add_msh()
        builder.add_pid(patient)
        builder.add_pv1("O")
        builder.add_orc(
            order_control="NW",
            placer_order_number=prescription.prescription_id,
            order_status="SC",
            transaction_datetime=prescription.prescription_date,
            ordering_provider=bundle.provider,
        )
        if patient.diagnoses:
            builder.add_diagnoses(patient.diagnoses)
        if patient.allergies:
            builder.add_allergies(patient.allergies)
        if prescription.clinical_notes:
            builder.add_nte(prescription.clinical_notes, set_id=1, source="P")

        for dispense_number, medication in enumerate(bundle.medications, start=1):
            builder.add_medication_order(medication)
            if builder.config.is_dispense_variant:
                builder.add_rxd(medication, dispense_number)

        message = builder.serialize()
        logger.info(
            f"Built {builder.config.message_type_code} message {builder.message_control_id} "
            f"for prescription {prescription.prescription_id} "
            f"({len(builder.segments)} segments)"
        )
        return message


# ------------------------------------------------------------------
# Private helpers
# ------------------------------------------------------------------

def _lookup(record: Mapping[str, Any], path: str) -> Any:
    value: Any = record
    for key in path.split("."):
        if not isinstance(value, Mapping) or value.get(key) is None:
            raise MissingFieldError(path)
        value = value[key]
    return value


def _check_required(record: Mapping[str, Any]) -> None:
    for path in _REQUIRED_FIELDS:
        _lookup(record, path)
    items = record["items"]
    # At least one medication; a bare string or mapping is not a list of items
    if not isinstance(items, Sequence) or isinstance(items, (str, bytes)) or not items:
        raise MissingFieldError("items")
    for index, item in enumerate(items):
        for name in _REQUIRED_ITEM_FIELDS:
            if not isinstance(item, Mapping) or item.get(name) is None:
                raise MissingFieldError(f"items[{index}].{name}")


def _parse_date(value: Any, field: str) -> date:
    """Accept ``YYYYMMDD``, ISO-8601 strings, or date/datetime objects."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) == 8 and text.isdigit():
            return datetime.strptime(text, "%Y%m%d").date()
        return date.fromisoformat(text)
    except ValueError as exc:
        raise HL7BuildError(f"{field}: unrecognised date {value!r}") from exc


def _parse_datetime(value: Any, field: str) -> datetime | None:
    """Accept ``YYYYMMDDHHMMSS`` (or shorter HL7 precision), ISO-8601, or datetime objects.

    Digit-only strings are always read as HL7 timestamps, never as Unix epochs.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    try:
        if text.isdigit():
            fmt = _HL7_DATETIME_FORMATS.get(len(text))
            if fmt is None:
                raise ValueError(text)
            return datetime.strptime(text, fmt)
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise HL7BuildError(f"{field}: unrecognised date/time {value!r}") from exc


def _diagnosis(value: Any) -> Diagnosis:
    if isinstance(value, Mapping):
        code = value.get("code")
        if code is None:
            raise MissingFieldError("patient.diagnoses.code")
        return (code, value.get("description") or "")
    if isinstance(value, (list, tuple)):
        return (value[0], value[1] if len(value) > 1 else "")
    return str(value)
