"""Message build configuration.

A single frozen ``HL7Config`` is read by every segment and assembler taking
part in one build, so it can be shared between builds without copying.
"""

from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict, Field


# Variant tag -> (message code, trigger event)
MESSAGE_VARIANTS: dict[str, tuple[str, str]] = {
    "ORM": ("ORM", "O01"),
    "ORU": ("ORU", "R01"),
    "ADT": ("ADT", "A01"),
    "RDE": ("RDE", "O11"),
}

# Pharmacy/treatment encoded order: the only variant that carries RXD segments
DISPENSE_VARIANT = "RDE"

_ENV_PREFIX = "HL7_"


class HL7Config(BaseModel):
    """Settings for one HL7v2 message build."""

    model_config = ConfigDict(frozen=True)

    version: str = Field(default="2.5", description="MSH-12 version id")
    message_type: str = Field(default=DISPENSE_VARIANT, description="Variant tag, e.g. RDE")
    sending_application: str = Field(default="PRESCRIPTION_SYSTEM")
    sending_facility: str = Field(default="HEALTHCARE_PROVIDER")
    receiving_application: str = Field(default="PHARMACY_SYSTEM")
    receiving_facility: str = Field(default="PHARMACY")
    charset: str = Field(default="UTF-8", description="MSH-18 character set")
    country_code: str = Field(default="USA", description="MSH-17 country code")
    processing_id: str = Field(default="P", description="MSH-11 processing id (P/T/D)")
    message_control_id: str | None = Field(
        default=None, description="MSH-10; generated from the clock when None"
    )
    include_msh: bool = Field(default=True, description="Add MSH at build time if missing")
    max_field_length: int | None = Field(
        default=200,
        ge=1,
        description=(
            "Per-value limit: each scalar or component is cut to this many characters "
            "before escaping; None disables"
        ),
    )
    escape_values: bool = Field(
        default=True, description="Escape structural characters in field values"
    )

    @property
    def message_type_components(self) -> tuple[str, ...]:
        """MSH-9 components.

        A variant tag (``RDE``) resolves through ``MESSAGE_VARIANTS``; any
        other value passes through verbatim, split on ``^`` so a full type
        such as ``RDE^O11`` is written as its components.
        """
        if self.message_type in MESSAGE_VARIANTS:
            return MESSAGE_VARIANTS[self.message_type]
        return tuple(self.message_type.split("^"))

    @property
    def message_type_code(self) -> str:
        """MSH-9 rendered with the default component separator, e.g. ``RDE^O11``."""
        return "^".join(self.message_type_components)

    @property
    def is_dispense_variant(self) -> bool:
        return self.message_type_components == MESSAGE_VARIANTS[DISPENSE_VARIANT]

    @classmethod
    def from_environment(cls, **overrides: object) -> "HL7Config":
        """Build a config from ``HL7_*`` environment variables.

        Unset variables keep their defaults; keyword ``overrides`` win over both.

        Example:
            HL7_SENDING_FACILITY=HOSPITAL_XYZ HL7_MESSAGE_TYPE=ORM
        """
        values: dict[str, object] = {}
        for name in (
            "version",
            "message_type",
            "sending_application",
            "sending_facility",
            "receiving_application",
            "receiving_facility",
            "charset",
            "country_code",
            "processing_id",
            "message_control_id",
        ):
            env_value = os.environ.get(f"{_ENV_PREFIX}{name.upper()}")
            if env_value:
                values[name] = env_value
        values.update(overrides)
        return cls(**values)
