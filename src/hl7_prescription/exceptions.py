"""Errors raised while building an HL7v2 prescription message.

Any of these aborts the current build; no partial message is returned.
"""

from __future__ import annotations


class HL7BuildError(ValueError):
    """Base class for failures while assembling an HL7v2 message."""


class InvalidPositionError(HL7BuildError):
    """Raised when a field or component position below 1 is assigned."""

    def __init__(self, position: int, kind: str = "field") -> None:
        self.position = position
        self.kind = kind
        super().__init__(f"{kind} position must be >= 1, got {position}")


class MissingFieldError(HL7BuildError, KeyError):
    """Raised when a required field is absent from the input record."""

    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"required field {field!r} is missing from the record")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]
