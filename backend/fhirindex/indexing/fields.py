"""Search parameter descriptor factories.

Each factory returns a SearchParameter whose extractor walks one element
path and encodes what it finds. Catalog modules compose these into the
per-type tables; anything the factories cannot express is written as a
plain extractor function and wrapped with ``custom``.
"""

from typing import Callable, Iterable, Iterator

from fhirindex.indexing import encoders
from fhirindex.indexing.dates import parse_fhir_date
from fhirindex.indexing.paths import choice, walk
from fhirindex.indexing.references import reference_string
from fhirindex.indexing.registry import Extracted, FieldContext, ReferenceValue, SearchParameter
from fhirindex.indexing.rows import RowValue


def custom(
    name: str,
    param_type: str,
    extractor: Callable[[dict, FieldContext], Iterable[Extracted]],
    **kwargs,
) -> SearchParameter:
    """Wrap a hand-written extractor."""
    return SearchParameter(name, param_type, extractor, **kwargs)


# =============================================================================
# Tokens
# =============================================================================


def token(name: str, path: str, system: str | None = None) -> SearchParameter:
    """Plain code / boolean elements, optionally with a fixed code system."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for code in walk(resource, path):
            yield encoders.token(code, system)

    return SearchParameter(name, "token", extract)


def concept_codings(concept: dict, first_only: bool = False) -> Iterator[RowValue | None]:
    """Token rows for the codings of one CodeableConcept."""
    codings = concept.get("coding") or []
    if first_only:
        codings = codings[:1]
    for value in codings:
        yield encoders.coding(value)


def concept(name: str, path: str, first_only: bool = False) -> SearchParameter:
    """CodeableConcept elements: one token row per coding."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield from concept_codings(value, first_only)

    return SearchParameter(name, "token", extract)


def coding(name: str, path: str) -> SearchParameter:
    """Coding elements."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.coding(value)

    return SearchParameter(name, "token", extract)


def identifier(name: str = "identifier", path: str = "identifier") -> SearchParameter:
    """Identifier elements."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.identifier(value)

    return SearchParameter(name, "token", extract)


def telecom(name: str, path: str = "telecom", system: str | None = None) -> SearchParameter:
    """ContactPoint elements, optionally only those of one system (email, phone)."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            if system and value.get("system") != system:
                continue
            yield encoders.token(value.get("value"), value.get("system"))

    return SearchParameter(name, "token", extract)


def boolean(name: str, path: str) -> SearchParameter:
    """Boolean elements, indexed as "true" / "false" tokens."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            if isinstance(value, bool):
                yield encoders.string(value)

    return SearchParameter(name, "token", extract)


# =============================================================================
# Strings, URIs, numbers
# =============================================================================


def string(name: str, path: str, param_type: str = "string") -> SearchParameter:
    """Primitive string-like elements."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.string(value)

    return SearchParameter(name, param_type, extract)


def uri(name: str, path: str) -> SearchParameter:
    return string(name, path, param_type="uri")


def number(name: str, path: str) -> SearchParameter:
    return string(name, path, param_type="number")


def _joined(parts: Iterable) -> str | None:
    text = " ".join(str(p) for p in parts if p)
    return text or None


def human_name_text(name: dict) -> str | None:
    """Full text of a HumanName: prefix, given, family, suffix, text."""
    return _joined([
        *name.get("prefix", []),
        *name.get("given", []),
        name.get("family"),
        *name.get("suffix", []),
        name.get("text"),
    ])


def address_text(address: dict) -> str | None:
    """Full text of an Address: lines, city, state, country, postal code, text."""
    return _joined([
        *address.get("line", []),
        address.get("city"),
        address.get("state"),
        address.get("country"),
        address.get("postalCode"),
        address.get("text"),
    ])


def human_name(name: str = "name", path: str = "name") -> SearchParameter:
    """HumanName elements, one string row per name."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.string(human_name_text(value))

    return SearchParameter(name, "string", extract)


def address(name: str = "address", path: str = "address") -> SearchParameter:
    """Address elements, one string row per address."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.string(address_text(value))

    return SearchParameter(name, "string", extract)


def address_parts(prefix: str = "address", path: str = "address") -> list[SearchParameter]:
    """The standard address-* companion parameters."""
    return [
        address(prefix, path),
        string(f"{prefix}-city", f"{path}.city"),
        string(f"{prefix}-state", f"{path}.state"),
        string(f"{prefix}-country", f"{path}.country"),
        string(f"{prefix}-postalcode", f"{path}.postalCode"),
        token(f"{prefix}-use", f"{path}.use", system="http://hl7.org/fhir/address-use"),
    ]


# =============================================================================
# Dates
# =============================================================================


def date(name: str, path: str) -> SearchParameter:
    """date / dateTime / instant elements."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.date(value, context.local_tz)

    return SearchParameter(name, "date", extract)


def period(name: str, path: str) -> SearchParameter:
    """Period elements, encoded as PERIOD rows."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.period(value.get("start"), value.get("end"), context.local_tz)

    return SearchParameter(name, "date", extract)


def timing_bounds(timing: dict, context: FieldContext) -> RowValue | None:
    """Earliest and latest Timing.event, encoded as a PERIOD row."""
    events = [parse_fhir_date(event) for event in timing.get("event", []) if event]
    if not events:
        bounds = (timing.get("repeat") or {}).get("boundsPeriod")
        if bounds:
            return encoders.period(bounds.get("start"), bounds.get("end"), context.local_tz)
        return None
    earliest = min(events, key=lambda e: e.moment)
    latest = max(events, key=lambda e: e.moment)
    return encoders.period(earliest, latest, context.local_tz)


def encode_date_choice(node: dict, element: str, context: FieldContext) -> RowValue | None:
    """Encode a date-ish choice element (effective[x], onset[x], ...)."""
    found = choice(node, element)
    if found is None:
        return None
    suffix, value = found
    if suffix in ("DateTime", "Instant", "Date"):
        return encoders.date(value, context.local_tz)
    if suffix == "Period":
        return encoders.period(value.get("start"), value.get("end"), context.local_tz)
    if suffix == "Timing":
        return timing_bounds(value, context)
    return None


def date_choice(name: str, element: str, parent: str = "") -> SearchParameter:
    """Choice-typed date elements: dateTime, instant, Period or Timing."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for node in walk(resource, parent):
            yield encode_date_choice(node, element, context)

    return SearchParameter(name, "date", extract)


# =============================================================================
# Quantities
# =============================================================================


def quantity(name: str, path: str) -> SearchParameter:
    """Quantity / Money elements."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for value in walk(resource, path):
            yield encoders.quantity_of(value)

    return SearchParameter(name, "quantity", extract)


# =============================================================================
# References
# =============================================================================


def reference(
    name: str,
    path: str,
    targets: tuple[str, ...] = (),
    narrowing: dict[str, str] | None = None,
) -> SearchParameter:
    """Reference elements.

    Args:
        name: Search parameter name.
        path: Element path to the Reference(s).
        targets: Declared target resource types.
        narrowing: Resolved target type -> additional, narrower parameter name.
    """

    def extract(resource: dict, context: FieldContext) -> Iterator[ReferenceValue | None]:
        for value in walk(resource, path):
            ref = reference_string(value)
            if ref:
                type_hint = value.get("type") if isinstance(value, dict) else None
                yield ReferenceValue(ref, type_hint=type_hint)

    return SearchParameter(name, "reference", extract, targets=targets, narrowing=dict(narrowing or {}))


def subject(name: str = "subject", path: str = "subject", targets: tuple[str, ...] = ()) -> SearchParameter:
    """The common subject reference that narrows to 'patient' for Patient targets."""
    return reference(name, path, targets=targets, narrowing={"Patient": "patient"})


# =============================================================================
# Extensions
# =============================================================================


def _extensions(resource: dict, url: str) -> Iterator[dict]:
    for extension in resource.get("extension", []):
        if extension.get("url") == url:
            yield extension


def extension_concept(name: str, url: str) -> SearchParameter:
    """Extension carrying a valueCodeableConcept or valueCoding."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for extension in _extensions(resource, url):
            if "valueCodeableConcept" in extension:
                yield from concept_codings(extension["valueCodeableConcept"])
            elif "valueCoding" in extension:
                yield encoders.coding(extension["valueCoding"])
            for nested in extension.get("extension", []):
                if "valueCoding" in nested:
                    yield encoders.coding(nested["valueCoding"])

    return SearchParameter(name, "token", extract)


def extension_string(name: str, url: str) -> SearchParameter:
    """Extension carrying a valueString."""

    def extract(resource: dict, context: FieldContext) -> Iterator[RowValue | None]:
        for extension in _extensions(resource, url):
            yield encoders.string(extension.get("valueString"))

    return SearchParameter(name, "string", extract)
