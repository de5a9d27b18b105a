"""Build HL7v2 pharmacy order messages (RDE^O11 and friends) from prescription records."""

from .config import HL7Config, MESSAGE_VARIANTS
from .exceptions import HL7BuildError, InvalidPositionError, MissingFieldError
from .hl7 import (
    AckStatus,
    EncodingProfile,
    MessageAssembler,
    ResponseSummary,
    Segment,
    parse_response,
)
from .mapper import PrescriptionMapper
from .models import (
    MedicationItem,
    PatientInfo,
    PharmacyInfo,
    PrescribingProvider,
    PrescriptionBundle,
    PrescriptionInfo,
)

__version__ = "0.1.0"

__all__ = [
    "HL7Config",
    "MESSAGE_VARIANTS",
    "HL7BuildError",
    "InvalidPositionError",
    "MissingFieldError",
    "EncodingProfile",
    "MessageAssembler",
    "Segment",
    "parse_response",
    "AckStatus",
    "ResponseSummary",
    "PrescriptionMapper",
    "MedicationItem",
    "PatientInfo",
    "PharmacyInfo",
    "PrescribingProvider",
    "PrescriptionBundle",
    "PrescriptionInfo",
]
