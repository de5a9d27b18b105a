"""A single HL7v2 segment: a type code plus 1-indexed, pipe-delimited fields."""

from __future__ import annotations

from typing import Iterable

from loguru import logger

from ..exceptions import InvalidPositionError
from .encoding import DEFAULT_ENCODING, EncodingProfile


class Segment:
    """Ordered, sparse field list for one segment type.

    Fields are stored already escaped. Assigning a position beyond the current
    length backfills every gap with an empty string, so no slot below the
    highest assigned position is ever unset.

    ``max_field_length`` limits each value as written: a scalar field, or one
    component of a composite field. It applies before escaping, so a stored
    field may be longer than the limit once separators and escape sequences
    are added.
    """

    def __init__(
        self,
        segment_id: str,
        encoding: EncodingProfile = DEFAULT_ENCODING,
        max_field_length: int | None = None,
        escape_values: bool = True,
    ) -> None:
        self.segment_id = segment_id
        self.encoding = encoding
        self._max_field_length = max_field_length
        self._escape_values = escape_values
        self._fields: list[str] = []

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Segment({self.segment_id!r}, fields={len(self._fields)})"

    # ------------------------------------------------------------------
    # Field assignment
    # ------------------------------------------------------------------

    def set_field(self, value: object, position: int, escape: bool = True) -> None:
        """Store ``value`` at field ``position``, overwriting in place.

        Args:
            value: Scalar value; ``None`` stores an empty string.
            position: 1-based field position.
            escape: Pass False to store a pre-encoded value verbatim.

        Raises:
            InvalidPositionError: if ``position`` is below 1.
        """
        _check_position(position)
        encoded = self._encode(value) if escape else _as_text(value)
        self._backfill(position)
        self._fields[position - 1] = encoded

    def add_field(self, value: object, position: int) -> None:
        """Backfill up to ``position - 1`` and append ``value``.

        Intended for strictly left-to-right writes; once the segment is longer
        than ``position - 1`` the value still goes to the end.
        """
        _check_position(position)
        self._backfill(position - 1)
        self._fields.append(self._encode(value))

    def set_component(self, value: object, field_position: int, component_position: int) -> None:
        """Store ``value`` as one component of a field.

        Only the new component is escaped; the rejoined field is stored raw so
        the component separators themselves survive.
        """
        _check_position(field_position)
        _check_position(component_position, kind="component")
        self._backfill(field_position)

        current = self._fields[field_position - 1]
        sep = self.encoding.component
        components = current.split(sep) if current else []
        while len(components) < component_position:
            components.append("")
        components[component_position - 1] = self._encode(value)
        self._fields[field_position - 1] = sep.join(components)

    def set_components(self, values: Iterable[object], field_position: int) -> None:
        """Set components 1..n of a field from ``values``, in order."""
        for index, value in enumerate(values, start=1):
            self.set_component(value, field_position, index)

    def pad_to(self, position: int) -> None:
        """Blank every unset position up to and including ``position``."""
        _check_position(position)
        self._backfill(position)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def get_field(self, position: int) -> str:
        """Return the stored (escaped) value at ``position``, or ``""`` if unset."""
        _check_position(position)
        if position > len(self._fields):
            return ""
        return self._fields[position - 1]

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def serialize(self) -> str:
        """Render the segment as ``ID|f1|f2|...``."""
        sep = self.encoding.field
        return f"{self.segment_id}{sep}{sep.join(self._fields)}"

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _backfill(self, position: int) -> None:
        while len(self._fields) < position:
            self._fields.append("")

    def _encode(self, value: object) -> str:
        text = _as_text(value)
        if not text:
            return ""
        limit = self._max_field_length
        if limit is not None and len(text) > limit:
            logger.warning(
                f"{self.segment_id} value truncated from {len(text)} to {limit} characters"
            )
            text = text[:limit]
        return self.encoding.escape(text) if self._escape_values else text


def _as_text(value: object) -> str:
    return "" if value is None else str(value)


def _check_position(position: int, kind: str = "field") -> None:
    if position < 1:
        raise InvalidPositionError(position, kind)
