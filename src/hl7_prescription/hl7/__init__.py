from .encoding import DEFAULT_ENCODING, EncodingProfile
from .segment import Segment
from .assembler import MessageAssembler, format_hl7_datetime, format_name, generate_control_id
from .response import AckStatus, ResponseSummary, parse_response

__all__ = [
    "DEFAULT_ENCODING",
    "EncodingProfile",
    "Segment",
    "MessageAssembler",
    "format_hl7_datetime",
    "format_name",
    "generate_control_id",
    "AckStatus",
    "ResponseSummary",
    "parse_response",
]
