"""HL7v2 encoding characters and the escape scheme built on them."""

from __future__ import annotations

import re

from pydantic import BaseModel, ConfigDict, model_validator


# Escape sequence letter for each structural character role
_ESCAPE_CODES = {
    "field":        "F",
    "component":    "S",
    "repetition":   "R",
    "escape_char":  "E",
    "subcomponent": "T",
}


class EncodingProfile(BaseModel):
    """The five separator characters shared by every segment of a message."""

    model_config = ConfigDict(frozen=True)

    field: str = "|"
    component: str = "^"
    repetition: str = "~"
    escape_char: str = "\\"
    subcomponent: str = "&"

    @model_validator(mode="after")
    def check_characters(self) -> "EncodingProfile":
        chars = [getattr(self, role) for role in _ESCAPE_CODES]
        if any(len(c) != 1 for c in chars):
            raise ValueError(f"encoding characters must be single characters: {chars!r}")
        if len(set(chars)) != len(chars):
            raise ValueError(f"encoding characters must be distinct: {chars!r}")
        return self

    @property
    def encoding_characters(self) -> str:
        """MSH-2 value: component, repetition, escape, subcomponent (``^~\\&``)."""
        return f"{self.component}{self.repetition}{self.escape_char}{self.subcomponent}"

    def escape(self, value: str) -> str:
        """Replace structural characters in ``value`` with ``\\X\\`` sequences.

        The substitution is a single pass over the input, so the escape
        characters it introduces are never escaped again.
        """
        if not value:
            return ""
        e = self.escape_char
        table = str.maketrans({
            getattr(self, role): f"{e}{code}{e}" for role, code in _ESCAPE_CODES.items()
        })
        return value.translate(table)

    def unescape(self, value: str) -> str:
        """Reverse :meth:`escape` for the five structural sequences."""
        if not value:
            return ""
        e = re.escape(self.escape_char)
        reverse = {code: getattr(self, role) for role, code in _ESCAPE_CODES.items()}
        return re.sub(f"{e}([FSRET]){e}", lambda m: reverse[m.group(1)], value)


DEFAULT_ENCODING = EncodingProfile()
