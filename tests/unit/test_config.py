"""Unit tests for HL7Config and the code tables."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from hl7_prescription.config import HL7Config
from hl7_prescription.tables import CODE_TABLES, describe


class TestHL7Config:
    def test_defaults(self) -> None:
        cfg = HL7Config()
        assert cfg.version == "2.5"
        assert cfg.message_type == "RDE"
        assert cfg.message_type_code == "RDE^O11"
        assert cfg.processing_id == "P"
        assert cfg.include_msh is True
        assert cfg.max_field_length == 200
        assert cfg.is_dispense_variant is True

    def test_frozen(self) -> None:
        cfg = HL7Config()
        with pytest.raises(ValidationError):
            cfg.version = "2.3"  # type: ignore[misc]

    def test_unknown_variant_passes_through(self) -> None:
        cfg = HL7Config(message_type="RDS")
        assert cfg.message_type_components == ("RDS",)
        assert cfg.is_dispense_variant is False

    @pytest.mark.parametrize("message_type,components,dispense", [
        ("RDE^O11", ("RDE", "O11"), True),
        ("ORM^O01", ("ORM", "O01"), False),
        ("RDS^O13", ("RDS", "O13"), False),
    ])
    def test_full_message_type_passes_through(
        self, message_type: str, components: tuple[str, ...], dispense: bool
    ) -> None:
        cfg = HL7Config(message_type=message_type)
        assert cfg.message_type_components == components
        assert cfg.message_type_code == message_type
        assert cfg.is_dispense_variant is dispense

    def test_order_variant_is_not_dispense(self) -> None:
        assert HL7Config(message_type="ORM").is_dispense_variant is False

    def test_max_field_length_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            HL7Config(max_field_length=0)

    def test_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HL7_SENDING_FACILITY", "HOSPITAL_XYZ")
        monkeypatch.setenv("HL7_MESSAGE_TYPE", "ORM")
        monkeypatch.setenv("HL7_MESSAGE_CONTROL_ID", "CTRL-ENV")
        cfg = HL7Config.from_environment()
        assert cfg.sending_facility == "HOSPITAL_XYZ"
        assert cfg.message_type_code == "ORM^O01"
        assert cfg.message_control_id == "CTRL-ENV"
        assert cfg.receiving_facility == "PHARMACY"

    def test_from_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HL7_VERSION", "2.4")
        cfg = HL7Config.from_environment(version="2.5.1", include_msh=False)
        assert cfg.version == "2.5.1"
        assert cfg.include_msh is False

    def test_empty_environment_value_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HL7_CHARSET", "")
        assert HL7Config.from_environment().charset == "UTF-8"


class TestCodeTables:
    @pytest.mark.parametrize("table,code,expected", [
        ("route", "PO", "Oral"),
        ("route", "IV", "Intravenous"),
        ("medication_form", "TAB", "Tablet"),
        ("administrative_sex", "F", "Female"),
        ("patient_class", "O", "Outpatient"),
        ("order_status", "SC", "In process, scheduled"),
        ("priority", "S", "Stat"),
        ("units_of_measure", "MCG", "Microgram"),
    ])
    def test_known_codes(self, table: str, code: str, expected: str) -> None:
        assert describe(table, code) == expected

    def test_unknown_code_falls_back(self) -> None:
        assert describe("route", "XX") == "XX"

    def test_unknown_table_falls_back(self) -> None:
        assert describe("no_such_table", "PO") == "PO"

    def test_tables_are_read_only(self) -> None:
        with pytest.raises(TypeError):
            CODE_TABLES["route"]["XX"] = "Nowhere"  # type: ignore[index]
