"""FHIR date parsing and canonical sortable formatting.

Date values are indexed as 14-digit UTC strings (yyyyMMddHHmmss) so that
string comparison agrees with chronological order. Partial dates
("2020", "2020-05") are anchored at the start of the period they name.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from fhirindex.indexing.constants import DATETIME_SORT_FORMAT

_YEAR = re.compile(r"^\d{4}$")
_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})$")
_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


@dataclass(frozen=True)
class ParsedDate:
    """A parsed FHIR date/dateTime/instant.

    Date-only values carry no timezone; they are "floating" and render the
    same in every zone.
    """

    moment: datetime
    floating: bool = False

    def sortable(self) -> str:
        """Canonical UTC sortable form."""
        if self.floating:
            return self.moment.strftime(DATETIME_SORT_FORMAT)
        return self.moment.astimezone(timezone.utc).strftime(DATETIME_SORT_FORMAT)

    def local(self, tz: tzinfo) -> str:
        """Sortable form rendered in a local timezone (display only)."""
        if self.floating:
            return self.moment.strftime(DATETIME_SORT_FORMAT)
        return self.moment.astimezone(tz).strftime(DATETIME_SORT_FORMAT)


def parse_fhir_date(value: str) -> ParsedDate:
    """Parse a FHIR date, dateTime or instant string.

    Args:
        value: Raw FHIR date string.

    Returns:
        ParsedDate with a timezone-aware moment.

    Raises:
        ValueError: If the string is not a valid FHIR date.
    """
    if not isinstance(value, str):
        raise ValueError(f"Expected a date string, got {type(value).__name__}")

    value = value.strip()
    if _YEAR.match(value):
        return ParsedDate(datetime(int(value), 1, 1, tzinfo=timezone.utc), floating=True)
    if match := _YEAR_MONTH.match(value):
        year, month = (int(p) for p in match.groups())
        return ParsedDate(datetime(year, month, 1, tzinfo=timezone.utc), floating=True)
    if match := _DATE.match(value):
        year, month, day = (int(p) for p in match.groups())
        return ParsedDate(datetime(year, month, day, tzinfo=timezone.utc), floating=True)

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    moment = datetime.fromisoformat(value)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return ParsedDate(moment)


@lru_cache(maxsize=32)
def resolve_timezone(name: str) -> tzinfo:
    """Look up a timezone by IANA name; "UTC" short-circuits."""
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)
