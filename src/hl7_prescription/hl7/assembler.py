"""HL7v2 pharmacy message assembler.

Builds the segments of a prescription message (RDE^O11 by default) in the
order they are requested:

    MSH | PID | [OBX] | PV1 | ORC | [DG1] | [AL1] | [NTE] | RXE | RXR | [RXD]

Each ``add_*`` call writes one segment in the positional layout HL7 v2.5
defines for it and blanks the trailing positions that strict receivers expect
to be present.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Callable, Iterable, Sequence

from loguru import logger

from ..config import HL7Config
from ..models import Diagnosis, MedicationItem, PatientInfo, PrescribingProvider
from ..tables import ROUTE_TABLE_ID, describe
from .encoding import DEFAULT_ENCODING, EncodingProfile
from .segment import Segment

SEGMENT_DELIMITER = "\r"

# Last field position written for each segment type
SEGMENT_WIDTH: dict[str, int] = {
    "MSH": 20,
    "PID": 30,
    "OBX": 16,
    "PV1": 50,
    "ORC": 16,
    "RXE": 30,
    "RXR": 6,
    "RXD": 38,
    "DG1": 21,
    "AL1": 6,
}

_LOINC_BODY_WEIGHT = ("3141-9", "Body weight Measured", "LN")
_LOINC_BODY_HEIGHT = ("8302-2", "Body height", "LN")

_DIAGNOSIS_CODING_SYSTEM = "I10"
_DRUG_CODING_SYSTEM = "NDC"
_ALLERGY_TYPE_DRUG = "DA"
_DIAGNOSIS_TYPE_WORKING = "W"
_ACCEPT_ALWAYS = "AL"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class MessageAssembler:
    """Accumulate segments for one HL7v2 message and serialize them.

    One assembler builds one message. It is not safe to share between
    threads; the config and encoding it reads are immutable and may be.

    Args:
        config: Build settings; defaults to ``HL7Config()``.
        encoding: Separator characters used by every segment.
        clock: Returns the current time; injectable for deterministic output.
    """

    def __init__(
        self,
        config: HL7Config | None = None,
        encoding: EncodingProfile = DEFAULT_ENCODING,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or HL7Config()
        self.encoding = encoding
        self._clock = clock or _utc_now
        self._segments: list[Segment] = []
        self.message_control_id = (
            self.config.message_control_id or generate_control_id(self._clock())
        )

    # ------------------------------------------------------------------
    # Segment list
    # ------------------------------------------------------------------

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    @property
    def segment_ids(self) -> list[str]:
        return [s.segment_id for s in self._segments]

    def count(self, segment_id: str) -> int:
        """Number of segments of type ``segment_id`` appended so far."""
        return sum(1 for s in self._segments if s.segment_id == segment_id)

    def _new_segment(self, segment_id: str) -> Segment:
        return Segment(
            segment_id,
            self.encoding,
            max_field_length=self.config.max_field_length,
            escape_values=self.config.escape_values,
        )

    def _append(self, segment: Segment) -> None:
        width = SEGMENT_WIDTH.get(segment.segment_id)
        if width:
            segment.pad_to(width)
        self._segments.append(segment)
        logger.debug(f"Appended {segment.segment_id} ({len(self._segments)} segments)")

    def _now(self) -> str:
        return format_hl7_datetime(self._clock())

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def add_msh(self) -> None:
        """Append the MSH message header."""
        cfg = self.config
        msh = self._new_segment("MSH")

        # MSH-1 is the field separator itself, so HL7 field N is stored at N - 1
        def put(value: object, hl7_position: int) -> None:
            msh.set_field(value, hl7_position - 1)

        msh.set_field(self.encoding.encoding_characters, 1, escape=False)
        put(cfg.sending_application, 3)
        put(cfg.sending_facility, 4)
        put(cfg.receiving_application, 5)
        put(cfg.receiving_facility, 6)
        put(self._now(), 7)
        msh.set_components(cfg.message_type_components, 9 - 1)
        put(self.message_control_id, 10)
        put(cfg.processing_id, 11)
        put(cfg.version, 12)
        put(_ACCEPT_ALWAYS, 15)
        put(_ACCEPT_ALWAYS, 16)
        put(cfg.country_code, 17)
        put(cfg.charset, 18)
        msh.pad_to(SEGMENT_WIDTH["MSH"] - 1)
        self._segments.append(msh)
        logger.debug(f"Appended MSH ({len(self._segments)} segments)")

    # ------------------------------------------------------------------
    # Patient and visit
    # ------------------------------------------------------------------

    def add_pid(self, patient: PatientInfo) -> None:
        """Append PID, then an OBX for each of weight and height that is present."""
        pid = self._new_segment("PID")
        pid.set_field("1", 1)
        pid.set_component(patient.patient_id, 3, 1)
        pid.set_component(self.config.sending_facility, 3, 3)
        pid.set_component("MR", 3, 4)
        pid.set_components(name_components(patient.name), 5)
        pid.set_field(format_hl7_datetime(patient.date_of_birth), 7)
        pid.set_field(patient.gender, 8)
        self._append(pid)

        if patient.weight_kg is not None:
            self.add_observation(_LOINC_BODY_WEIGHT, patient.weight_kg, "kg")
        if patient.height_cm is not None:
            self.add_observation(_LOINC_BODY_HEIGHT, patient.height_cm, "cm")

    def add_observation(self, identifier: Sequence[str], value: float, units: str) -> None:
        """Append a numeric OBX; its set id counts the OBX segments so far."""
        obx = self._new_segment("OBX")
        obx.set_field(self.count("OBX") + 1, 1)
        obx.set_field("NM", 2)
        obx.set_components(identifier, 3)
        obx.set_field(format_number(value), 5)
        obx.set_field(units, 6)
        obx.set_field("F", 11)
        obx.set_field(self._now(), 14)
        self._append(obx)

    def add_pv1(self, patient_class: str = "O") -> None:
        pv1 = self._new_segment("PV1")
        pv1.set_field("1", 1)
        pv1.set_field(patient_class, 2)
        self._append(pv1)

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    def add_orc(
        self,
        order_control: str = "NW",
        placer_order_number: str = "",
        filler_order_number: str = "",
        order_status: str = "SC",
        response_flag: str = "",
        timing_quantity: Sequence[str] | None = None,
        parent_order: str = "",
        transaction_datetime: date | None = None,
        entered_by: PrescribingProvider | None = None,
        verified_by: PrescribingProvider | None = None,
        ordering_provider: PrescribingProvider | None = None,
    ) -> None:
        """Append the ORC common order segment.

        Args:
            order_control: ORC-1, ``NW`` for a new order.
            placer_order_number: ORC-2, usually the prescription id.
            filler_order_number: ORC-3.
            order_status: ORC-5, see table ``order_status``.
            response_flag: ORC-6.
            timing_quantity: ORC-7 components, written only when given.
            parent_order: ORC-8.
            transaction_datetime: ORC-9; defaults to the current time.
            entered_by: ORC-10 as ``name^id``.
            verified_by: ORC-11 as ``name^id``.
            ordering_provider: ORC-12 as ``name^id``.
        """
        orc = self._new_segment("ORC")
        orc.set_field(order_control, 1)
        orc.set_field(placer_order_number, 2)
        orc.set_field(filler_order_number, 3)
        orc.set_field(order_status, 5)
        orc.set_field(response_flag, 6)
        if timing_quantity:
            orc.set_components(timing_quantity, 7)
        orc.set_field(parent_order, 8)
        orc.set_field(
            format_hl7_datetime(transaction_datetime) if transaction_datetime else self._now(),
            9,
        )
        for position, provider in ((10, entered_by), (11, verified_by), (12, ordering_provider)):
            if provider is not None:
                orc.set_components((provider.name, provider.id), position)
        self._append(orc)

    def add_medication_order(
        self,
        medication: MedicationItem,
        give_per: str = "DOSE",
        give_rate: str | None = None,
        give_units: str | None = None,
        give_strength: str | None = None,
        give_strength_units: str | None = None,
        site: str | None = None,
    ) -> None:
        """Append the RXE for ``medication`` followed by its RXR route segment."""
        self._append(
            self._rxe(medication, give_per, give_rate, give_units, give_strength, give_strength_units)
        )
        self._append(self._rxr(medication.route, site))

    def _rxe(
        self,
        medication: MedicationItem,
        give_per: str,
        give_rate: str | None,
        give_units: str | None,
        give_strength: str | None,
        give_strength_units: str | None,
    ) -> Segment:
        rxe = self._new_segment("RXE")

        timing: list[str] = []
        if medication.frequency:
            timing.append(medication.frequency)
        if medication.start_datetime:
            timing.append(format_hl7_datetime(medication.start_datetime))
        if medication.duration_days:
            timing.append(f"{medication.duration_days}D")
        rxe.set_components(timing, 1)

        instructions = medication.dosage_instruction
        if medication.special_instructions:
            instructions = f"{instructions}; {medication.special_instructions}"

        rxe.set_components(_medication_identifier(medication), 2)
        rxe.set_field(format_number(medication.quantity), 3)
        rxe.set_field(medication.unit, 5)
        rxe.set_field(describe("medication_form", medication.form), 6)
        rxe.set_field(instructions, 7)
        rxe.set_field(_substitution_marker(medication), 9)
        rxe.set_field(format_number(medication.quantity), 10)
        rxe.set_field(medication.unit, 11)
        rxe.set_field(medication.refills or 0, 12)
        rxe.set_field(give_per, 22)
        rxe.set_field(give_rate, 23)
        rxe.set_field(give_units, 24)
        rxe.set_field(give_strength, 25)
        rxe.set_field(give_strength_units, 26)
        return rxe

    def _rxr(self, route: str, site: str | None) -> Segment:
        rxr = self._new_segment("RXR")
        rxr.set_components((route, describe("route", route), ROUTE_TABLE_ID), 1)
        if site:
            rxr.set_field(site, 2)
        return rxr

    def add_rxd(
        self,
        medication: MedicationItem,
        dispense_number: int = 1,
        quantity_dispensed: float | None = None,
        fill_datetime: datetime | None = None,
    ) -> None:
        """Append an RXD pharmacy dispense segment."""
        quantity = medication.quantity if quantity_dispensed is None else quantity_dispensed
        rxd = self._new_segment("RXD")
        rxd.set_field(dispense_number, 1)
        rxd.set_components(_medication_identifier(medication), 2)
        rxd.set_field(format_hl7_datetime(fill_datetime) if fill_datetime else self._now(), 3)
        rxd.set_field(format_number(quantity), 4)
        rxd.set_field(medication.unit, 5)
        rxd.set_field(describe("medication_form", medication.form), 6)
        rxd.set_field(medication.refills or 0, 8)
        rxd.set_field(_substitution_marker(medication), 11)
        rxd.set_field(medication.strength, 16)
        self._append(rxd)

    # ------------------------------------------------------------------
    # Clinical context
    # ------------------------------------------------------------------

    def add_diagnoses(self, diagnoses: Iterable[Diagnosis]) -> None:
        """Append one DG1 per diagnosis, numbered from 1."""
        for set_id, diagnosis in enumerate(diagnoses, start=1):
            if isinstance(diagnosis, str):
                code, description = diagnosis, diagnosis
            else:
                code, description = diagnosis[0], diagnosis[1] or diagnosis[0]
            dg1 = self._new_segment("DG1")
            dg1.set_field(set_id, 1)
            dg1.set_field(_DIAGNOSIS_CODING_SYSTEM, 2)
            dg1.set_components((code, description, _DIAGNOSIS_CODING_SYSTEM), 3)
            dg1.set_field(self._now(), 5)
            dg1.set_field(_DIAGNOSIS_TYPE_WORKING, 6)
            self._append(dg1)

    def add_allergies(self, allergies: Iterable[str]) -> None:
        """Append one AL1 drug allergy per entry, numbered from 1."""
        for set_id, allergy in enumerate(allergies, start=1):
            al1 = self._new_segment("AL1")
            al1.set_field(set_id, 1)
            al1.set_field(_ALLERGY_TYPE_DRUG, 2)
            al1.set_field(allergy, 3)
            self._append(al1)

    def add_nte(self, comment: str, set_id: int = 1, source: str = "P") -> None:
        # Line breaks would split the segment
        safe = comment.replace("\r", " ").replace("\n", " ")
        nte = self._new_segment("NTE")
        nte.set_field(set_id, 1)
        nte.set_field(source, 2)
        nte.set_field(safe, 3)
        self._append(nte)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def serialize(self) -> str:
        """Return the message text, segments joined by ``\\r``.

        When the config asks for a header and none was added, an MSH is
        inserted at the front first. Calling this again without further
        appends returns the same text.
        """
        if self.config.include_msh and "MSH" not in self.segment_ids:
            self.add_msh()
            self._segments.insert(0, self._segments.pop())
        message = SEGMENT_DELIMITER.join(s.serialize() for s in self._segments)
        logger.debug(
            f"Serialized {self.config.message_type_code} message "
            f"{self.message_control_id} ({len(self._segments)} segments)"
        )
        return message

    build_message = serialize


# ------------------------------------------------------------------
# Formatting helpers
# ------------------------------------------------------------------

def generate_control_id(now: datetime) -> str:
    """``MSG`` + timestamp to the millisecond, e.g. ``MSG20241210093015123``."""
    return "MSG" + now.strftime("%Y%m%d%H%M%S%f")[:-3]


def format_hl7_datetime(value: date | None) -> str:
    """Render a datetime as ``YYYYMMDDHHMMSS`` and a date as ``YYYYMMDD``."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.strftime("%Y%m%d%H%M%S")
    return value.strftime("%Y%m%d")


def format_number(value: float | int) -> str:
    """Drop a trailing ``.0`` so ``30.0`` renders as ``30``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def name_components(name: str) -> list[str]:
    """Split a display name into ``[family, given, middle...]``.

    Heuristic only: the first token is the given name and the last the family
    name. Prefixes, suffixes and multi-word family names are not recognised.
    """
    parts = name.split()
    if len(parts) < 2:
        return [name]
    return [parts[-1], parts[0], *parts[1:-1]]


def format_name(name: str, encoding: EncodingProfile = DEFAULT_ENCODING) -> str:
    """Render ``name`` as an XPN value, e.g. ``"John Doe"`` -> ``Doe^John``."""
    return encoding.component.join(name_components(name))


def _medication_identifier(medication: MedicationItem) -> tuple[str, str, str]:
    return (medication.medication_code, medication.medication_name, _DRUG_CODING_SYSTEM)


def _substitution_marker(medication: MedicationItem) -> str:
    return "G" if medication.substitution_allowed else "N"
