"""Search index row model.

An IndexRow is one queryable value of one search parameter on one stored
resource. Rows are derived data: produced fresh on every extraction and
replaced wholesale whenever the source resource changes.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any


class RowKind(str, Enum):
    """Discriminator for rows that need a special query encoding.

    Plain scalar rows carry no kind (None).
    """

    PERIOD = "PERIOD"
    COMPOSITE = "COMPOSITE"


@dataclass(frozen=True)
class RowValue:
    """The encoded value half of a row, before owner and name are known.

    Encoder primitives return RowValues; the engine stamps them with the
    owning resource id, the (possibly chain-prefixed) parameter name and
    the parameter type.
    """

    value: str | None
    value_high: str | None = None
    system: str | None = None
    code: str | None = None
    text: str | None = None
    kind: RowKind | None = None
    value_local: str | None = None
    value_high_local: str | None = None


def _clip(value: str | None, max_length: int | None) -> str | None:
    """Drop empty strings and truncate to the index column width."""
    if value is None or value == "":
        return None
    if max_length is not None and len(value) > max_length:
        return value[:max_length]
    return value


@dataclass(frozen=True)
class IndexRow:
    """One search index row.

    Args:
        owner_id: Id of the resource the row is indexed under. For chained
            rows this is the referencing resource, not the referenced one.
        param_name: Search parameter name, optionally chain-prefixed
            (e.g. "subject.name").
        param_type: FHIR search parameter type (token, date, reference, ...).
        value: Primary sortable value.
        value_high: Upper bound for PERIOD and range-valued rows.
        system: Coding system URI (token and quantity parameters).
        code: Unit or code qualifier (quantity parameters, tag display).
        text: Display text for partial matching.
        kind: PERIOD, COMPOSITE or None.
        value_local: Auxiliary local-timezone rendering of a date value.
            Informational only; never participates in ordering.
        value_high_local: Auxiliary local-timezone rendering of value_high.
    """

    owner_id: str
    param_name: str
    param_type: str
    value: str | None
    value_high: str | None = None
    system: str | None = None
    code: str | None = None
    text: str | None = None
    kind: RowKind | None = None
    value_local: str | None = None
    value_high_local: str | None = None

    @classmethod
    def from_value(
        cls,
        owner_id: str,
        param_name: str,
        param_type: str,
        row_value: RowValue,
        max_length: int | None = None,
    ) -> IndexRow:
        """Build a row from an encoded RowValue, truncating every column."""
        return cls(
            owner_id=owner_id,
            param_name=param_name,
            param_type=param_type,
            value=_clip(row_value.value, max_length),
            value_high=_clip(row_value.value_high, max_length),
            system=_clip(row_value.system, max_length),
            code=_clip(row_value.code, max_length),
            text=_clip(row_value.text, max_length),
            kind=row_value.kind,
            value_local=_clip(row_value.value_local, max_length),
            value_high_local=_clip(row_value.value_high_local, max_length),
        )

    @property
    def value_upper(self) -> str | None:
        """Upper-cased value for case-insensitive matching."""
        return self.value.upper() if self.value is not None else None

    @property
    def text_upper(self) -> str | None:
        """Upper-cased text for case-insensitive matching."""
        return self.text.upper() if self.text is not None else None

    def with_param_name(self, param_name: str) -> IndexRow:
        """Return a copy indexed under a different parameter name."""
        return replace(self, param_name=param_name)

    def to_dict(self) -> dict[str, Any]:
        """Plain dict form, including the derived upper-case columns."""
        data = asdict(self)
        data["kind"] = self.kind.value if self.kind is not None else None
        data["value_upper"] = self.value_upper
        data["text_upper"] = self.text_upper
        return data
