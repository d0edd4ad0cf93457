"""Encoder primitives.

Pure functions that turn one typed FHIR value into the value half of an
index row (RowValue). An absent value encodes to None, which callers treat
as "emit nothing".
"""

from datetime import tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any

from fhirindex.indexing.constants import (
    COMPONENT_DELIMITER,
    COORDINATE_OPEN_HIGH,
    COORDINATE_OPEN_LOW,
    COORDINATE_WIDTH,
    SYSTEM_CODE_DELIMITER,
)
from fhirindex.indexing.dates import ParsedDate, parse_fhir_date
from fhirindex.indexing.rows import RowKind, RowValue


def _present(value: Any) -> bool:
    return value is not None and value != ""


def decimal_string(raw: Any) -> str:
    """Render a FHIR decimal exactly, without float rounding.

    Raises:
        ValueError: If raw is not numeric.
    """
    if isinstance(raw, bool):
        raise ValueError("Boolean is not a decimal")
    if isinstance(raw, Decimal):
        number = raw
    elif isinstance(raw, float):
        number = Decimal(repr(raw))
    else:
        try:
            number = Decimal(str(raw))
        except InvalidOperation:
            raise ValueError(f"Not a decimal: {raw!r}") from None
    if not number.is_finite():
        raise ValueError(f"Not a finite decimal: {raw!r}")
    return str(number)


def string_form(raw: Any) -> str:
    """Canonical string form of a primitive value."""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (int, float, Decimal)):
        return decimal_string(raw)
    return str(raw)


# =============================================================================
# Text helpers
# =============================================================================


def coding_text(coding: dict) -> str | None:
    """Display text of a Coding."""
    return coding.get("display") or None


def identifier_text(identifier: dict) -> str | None:
    """Display text of an Identifier: its type's text."""
    return (identifier.get("type") or {}).get("text") or None


# =============================================================================
# Scalar encoders
# =============================================================================


def token(code: Any, system: str | None = None, text: str | None = None) -> RowValue | None:
    """Encode a (code, system) token. No code, no row."""
    if not _present(code):
        return None
    return RowValue(value=string_form(code), system=system or None, text=text or None)


def coding(value: dict) -> RowValue | None:
    """Encode a Coding as a token."""
    return token(value.get("code"), value.get("system"), coding_text(value))


def meta_coding(value: dict) -> RowValue | None:
    """Encode a meta tag / security label; the display rides in the code column."""
    if not _present(value.get("code")):
        return None
    return RowValue(
        value=string_form(value["code"]),
        system=value.get("system") or None,
        code=value.get("display") or None,
    )


def identifier(value: dict) -> RowValue | None:
    """Encode an Identifier as a token."""
    return token(value.get("value"), value.get("system"), identifier_text(value))


def string(raw: Any) -> RowValue | None:
    """Encode a string, uri, boolean or number value."""
    if not _present(raw):
        return None
    return RowValue(value=string_form(raw))


def date(raw: str | ParsedDate | None, tz: tzinfo) -> RowValue | None:
    """Encode a date/dateTime/instant.

    The canonical UTC form is the value; the local rendering rides along in
    the auxiliary column.

    Raises:
        ValueError: If raw is not a valid FHIR date.
    """
    if raw is None or raw == "":
        return None
    parsed = raw if isinstance(raw, ParsedDate) else parse_fhir_date(raw)
    return RowValue(value=parsed.sortable(), value_local=parsed.local(tz))


def period(
    low: str | ParsedDate | None,
    high: str | ParsedDate | None,
    tz: tzinfo,
) -> RowValue | None:
    """Encode a Period/range. Either bound may be absent; both absent is no row.

    Raises:
        ValueError: If a bound is not a valid FHIR date.
    """
    start = date(low, tz)
    end = date(high, tz)
    if start is None and end is None:
        return None
    return RowValue(
        value=start.value if start else None,
        value_high=end.value if end else None,
        kind=RowKind.PERIOD,
        value_local=start.value_local if start else None,
        value_high_local=end.value_local if end else None,
    )


def quantity(value: Any, system: str | None = None, code_or_unit: str | None = None) -> RowValue | None:
    """Encode a Quantity with an exact decimal value.

    Raises:
        ValueError: If value is present but not numeric.
    """
    if not _present(value):
        return None
    return RowValue(value=decimal_string(value), system=system or None, code=code_or_unit or None)


def quantity_of(value: dict) -> RowValue | None:
    """Encode a FHIR Quantity/Money element; coded unit wins over free-text unit."""
    unit = value.get("code") or value.get("unit") or value.get("currency")
    return quantity(value.get("value"), value.get("system"), unit)


# =============================================================================
# Composite encoders
# =============================================================================


def composite_component(system: str | None, code: Any) -> str:
    """One (system, code) component: "system|code"; missing system is empty."""
    return f"{system or ''}{SYSTEM_CODE_DELIMITER}{string_form(code) if code is not None else ''}"


def join_components(*components: str) -> str:
    """Join composite components in the given, fixed order."""
    return COMPONENT_DELIMITER.join(components)


def composite(
    *components: str,
    high_components: tuple[str, ...] | None = None,
    text: str | None = None,
) -> RowValue:
    """Encode a composite as a single delimited value.

    Args:
        components: Component strings in their documented order.
        high_components: Upper-bound components for range-valued composites.
        text: Optional auxiliary rendering.
    """
    return RowValue(
        value=join_components(*components),
        value_high=join_components(*high_components) if high_components else None,
        text=text,
        kind=RowKind.COMPOSITE,
    )


def pad_coordinate(position: int | None, default: str) -> str:
    """Zero-pad a sequence coordinate; absent positions take the open default."""
    if position is None:
        return default
    if isinstance(position, bool) or int(position) < 0:
        raise ValueError(f"Invalid coordinate: {position!r}")
    padded = f"{int(position):0{COORDINATE_WIDTH}d}"
    if len(padded) > COORDINATE_WIDTH:
        raise ValueError(f"Coordinate exceeds {COORDINATE_WIDTH} digits: {position!r}")
    return padded


def coordinate_range(start: int | None, end: int | None, zero_based: bool = False) -> str:
    """Encode a coordinate range as "start$end" with fixed-width padding.

    An open start pads to all zeros, an open end to all nines. Zero-based
    coordinate systems shift the start down by one so ranges compare on a
    common basis.
    """
    if start is not None and zero_based:
        start = max(int(start) - 1, 0)
    return join_components(
        pad_coordinate(start, COORDINATE_OPEN_LOW),
        pad_coordinate(end, COORDINATE_OPEN_HIGH),
    )
