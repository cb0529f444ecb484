"""
Idempotent value normalizers used by the cleaning rules and aggregations.

All normalizers must be idempotent: normalized(normalized(x)) == normalized(x).
They work on single values; the rules in catalog_pipeline.cleaners apply them
column by column and turn NormalizeError into row-scoped ParseError entries.
"""
import re
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple


class NormalizeError(Exception):
    """Raised when normalization fails and cannot be recovered."""

    pass


# "September 25, 2021" is the catalog export format; ISO keeps canonical output re-parseable
ISO_DATE_FORMAT = "%Y-%m-%d"
DEFAULT_DATE_FORMATS = ("%B %d, %Y", ISO_DATE_FORMAT)

_QUANTITY = re.compile(r"^\s*(\d+)\s+([A-Za-z]+)\s*$")


def is_blank(value: Optional[object]) -> bool:
    """True for None, empty strings and whitespace-only strings."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def to_text(value: Optional[object]) -> Optional[str]:
    """
    Coerce an ingested value to optional text.

    - None stays None
    - date/datetime → ISO date text (so canonical records can be re-cleaned)
    - anything else → str(value)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        return value
    return str(value)


def split_tokens(value: Optional[str], delimiter: str = ",") -> List[str]:
    """
    Split a delimited multi-valued field into trimmed, non-empty tokens.

    Example: " Dramas, International Movies ,," → ["Dramas", "International Movies"]
    """
    if is_blank(value):
        return []
    return [token.strip() for token in str(value).split(delimiter) if token.strip()]


def primary_token(value: Optional[str], delimiter: str = ",") -> Optional[str]:
    """
    First token of a delimited field, trimmed.

    Returns None when the first token is blank (", France" has no primary value).

    Idempotent: primary_token("United States") == "United States"
    """
    if is_blank(value):
        return None
    first = str(value).split(delimiter, 1)[0].strip()
    return first or None


def parse_date(value: Optional[str], formats: Sequence[str] = DEFAULT_DATE_FORMATS) -> date:
    """
    Parse a textual date into a calendar date.

    Tries each format in order. Day numbers may be unpadded
    ("August 4, 2017").

    Idempotent over ISO text: parse_date("2021-09-25") == date(2021, 9, 25)

    Raises:
        NormalizeError: If no format matches
    """
    if is_blank(value):
        raise NormalizeError("Date is empty or None")

    value_str = str(value).strip()
    for fmt in formats:
        try:
            return datetime.strptime(value_str, fmt).date()
        except ValueError:
            continue

    raise NormalizeError(f"Unparseable date: {value_str!r} (tried {', '.join(formats)})")


def parse_quantity(value: Optional[str], units: Dict[str, str]) -> Tuple[int, str]:
    """
    Parse "<integer> <unit word>" into (magnitude, canonical unit).

    Args:
        value: Text such as "90 min" or "3 Seasons"
        units: Unit word → canonical unit name, e.g. {"min": "minutes",
               "Season": "seasons", "Seasons": "seasons"}. Lookup is
               case-insensitive.

    Raises:
        NormalizeError: If the text has no leading integer or the unit is unknown
    """
    if is_blank(value):
        raise NormalizeError("Quantity is empty or None")

    match = _QUANTITY.match(str(value))
    if not match:
        raise NormalizeError(f"Expected '<number> <unit>', got {value!r}")

    magnitude, unit_word = match.groups()
    lookup = {alias.lower(): canonical for alias, canonical in units.items()}
    canonical = lookup.get(unit_word.lower())
    if canonical is None:
        raise NormalizeError(f"Unknown unit {unit_word!r} in {value!r}")

    return int(magnitude), canonical
