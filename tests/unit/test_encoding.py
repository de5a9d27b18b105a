"""Unit tests for the encoding profile and HL7 escape scheme."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hl7_prescription.hl7.encoding import DEFAULT_ENCODING, EncodingProfile


class TestEncodingProfile:
    def test_default_separators(self) -> None:
        enc = EncodingProfile()
        assert enc.field == "|"
        assert enc.component == "^"
        assert enc.repetition == "~"
        assert enc.escape_char == "\\"
        assert enc.subcomponent == "&"

    def test_encoding_characters_excludes_field_separator(self) -> None:
        assert DEFAULT_ENCODING.encoding_characters == "^~\\&"

    def test_profile_is_immutable(self) -> None:
        with pytest.raises(ValidationError):
            DEFAULT_ENCODING.field = "#"  # type: ignore[misc]

    def test_duplicate_characters_rejected(self) -> None:
        with pytest.raises(ValidationError, match="distinct"):
            EncodingProfile(component="|")

    def test_multi_character_separator_rejected(self) -> None:
        with pytest.raises(ValidationError, match="single"):
            EncodingProfile(field="||")

    def test_custom_profile_encoding_characters(self) -> None:
        enc = EncodingProfile(field="#", component="@")
        assert enc.encoding_characters == "@~\\&"


class TestEscape:
    @pytest.mark.parametrize("raw,escaped", [
        ("BP 120|80", r"BP 120\F\80"),
        ("Doe^John", r"Doe\S\John"),
        ("a~b", r"a\R\b"),
        ("C:\\temp", r"C:\E\temp"),
        ("salt & pepper", r"salt \T\ pepper"),
    ])
    def test_each_structural_character(self, raw: str, escaped: str) -> None:
        assert DEFAULT_ENCODING.escape(raw) == escaped

    def test_all_characters_together(self) -> None:
        assert DEFAULT_ENCODING.escape("a|b^c~d\\e&f") == r"a\F\b\S\c\R\d\E\e\T\f"

    def test_literal_escape_character_not_double_escaped(self) -> None:
        # "\" followed by "|": each is escaped exactly once
        assert DEFAULT_ENCODING.escape("\\|") == "\\E\\\\F\\"

    def test_plain_value_unchanged(self) -> None:
        assert DEFAULT_ENCODING.escape("Lisinopril 10 mg") == "Lisinopril 10 mg"

    def test_empty_value(self) -> None:
        assert DEFAULT_ENCODING.escape("") == ""

    def test_custom_escape_character(self) -> None:
        enc = EncodingProfile(escape_char="!")
        assert enc.escape("a|b!c") == "a!F!b!E!c"


class TestUnescape:
    def test_reverses_escape(self) -> None:
        raw = "a|b^c~d\\e&f"
        assert DEFAULT_ENCODING.unescape(DEFAULT_ENCODING.escape(raw)) == raw

    def test_escaped_escape_then_letter(self) -> None:
        # \E\ followed by "F\" text must not be read as \F\
        raw = "\\F\\"
        escaped = DEFAULT_ENCODING.escape(raw)
        assert escaped == "\\E\\F\\E\\"
        assert DEFAULT_ENCODING.unescape(escaped) == raw

    def test_unknown_sequences_left_alone(self) -> None:
        assert DEFAULT_ENCODING.unescape(r"line\.br\next") == r"line\.br\next"

    def test_empty_value(self) -> None:
        assert DEFAULT_ENCODING.unescape("") == ""
