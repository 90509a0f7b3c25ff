"""Component extraction for free-text, comma-separated postal addresses.

Google returns a single formatted string per candidate, e.g.::

    "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA"
    "10 Downing St, London SW1A 2AA, UK"

The parser splits on commas and walks the segments from the right:

- country: the last segment when there are at least two and it has no digits
- postcode: UK, Canadian, US ZIP or bare 4-6 digit codes, searched right to
  left in the segments after the first
- state: a trailing 2-3 letter upper-case code ("CA", "NSW")
- city: text left beside the postcode, otherwise the segment before it
- street: everything before the city

Every extractor is total: unknown components come back as "". Extractors are
idempotent, so feeding an extracted component back in returns it unchanged;
a bare component that fits the slot ("Mountain View", "CA") is kept as is.
"""

from __future__ import annotations

import re
from dataclasses import astuple, dataclass, fields
from functools import lru_cache
from typing import Callable, Dict, List, Optional, Protocol

_POSTCODE_PATTERNS = [
    re.compile(r"\b([A-Z]{1,2}\d[A-Z\d]?\s*\d[A-Z]{2})\b"),  # UK
    re.compile(r"\b([A-Z]\d[A-Z]\s?\d[A-Z]\d)\b"),  # Canada
    re.compile(r"\b(\d{5}(?:-\d{4})?)\b"),  # US ZIP
    re.compile(r"\b(\d{4,6})\b"),
]
_STATE_SUFFIX = re.compile(r"^(?:(?P<city>.*?)\s+)?(?P<state>[A-Z]{2,3})$")


@dataclass(frozen=True)
class AddressComponents:
    street_address: str = ""
    city: str = ""
    postcode: str = ""
    state: str = ""
    country: str = ""


class AddressTextParser(Protocol):
    def parse(self, text: str) -> AddressComponents:
        ...


def _has_digit(value: str) -> bool:
    return any(ch.isdigit() for ch in value)


def _collapse(value: str) -> str:
    return " ".join(value.split())


def _canonical(text: str) -> str:
    if not isinstance(text, str):
        return ""
    return ", ".join(_collapse(p) for p in text.split(",") if p.strip())


def _find_postcode(segment: str, lone: bool = False) -> Optional[re.Match]:
    for pattern in _POSTCODE_PATTERNS:
        for match in pattern.finditer(segment):
            # in a lone segment a leading number is a house number, not a postcode
            if lone and match.start() == 0 and match.end() != len(segment):
                continue
            return match
    return None


@lru_cache(maxsize=1024)
def _split(text: str) -> AddressComponents:
    parts: List[str] = text.split(", ") if text else []
    if not parts:
        return AddressComponents()

    country = ""
    if len(parts) >= 2 and not _has_digit(parts[-1]):
        country = parts.pop()

    postcode = ""
    leftover = ""
    pc_index: Optional[int] = None
    # the first segment is the street unless it is all we have
    lowest = 0 if len(parts) == 1 else 1
    for i in range(len(parts) - 1, lowest - 1, -1):
        match = _find_postcode(parts[i], lone=len(parts) == 1)
        if match:
            postcode = match.group(1)
            leftover = _collapse(parts[i][: match.start()] + " " + parts[i][match.end():])
            pc_index = i
            break

    city = ""
    state = ""
    if pc_index is not None:
        street_end = pc_index
        state_match = _STATE_SUFFIX.match(leftover) if leftover else None
        if state_match:
            state = state_match.group("state")
            city = (state_match.group("city") or "").strip()
        else:
            city = leftover
        if not city and pc_index >= 1 and (pc_index >= 2 or not _has_digit(parts[0])):
            city = parts[pc_index - 1]
            street_end = pc_index - 1
        trailing = parts[pc_index + 1:]
        if trailing and not state:
            state = trailing[-1]
    else:
        rest = list(parts)
        if len(rest) >= 2 and _STATE_SUFFIX.match(rest[-1]) and " " not in rest[-1]:
            state = rest.pop()
        # a segment led by a house number stays with the street
        if len(rest) >= 2 and not rest[-1][0].isdigit():
            city = rest[-1]
            street_end = len(rest) - 1
        elif len(rest) == 1 and not _has_digit(rest[0]) and (state or country):
            city = rest[0]
            street_end = 0
        else:
            street_end = len(rest)

    return AddressComponents(
        street_address=", ".join(parts[:street_end]),
        city=city,
        postcode=postcode,
        state=state,
        country=country,
    )


_FITS: Dict[str, Callable[[str], bool]] = {
    "street_address": lambda value: True,
    "city": lambda value: not _has_digit(value),
    "postcode": lambda value: any(p.fullmatch(value) for p in _POSTCODE_PATTERNS),
    "state": lambda value: not _has_digit(value),
    "country": lambda value: not _has_digit(value),
}


def _is_lone(parts: AddressComponents, text: str) -> bool:
    """True when *text* parses to a single component spanning all of it."""
    return [v for v in astuple(parts) if v] == [text]


def _settle(field: str, value: str) -> str:
    """Re-extract *field* from *value* until it reproduces itself."""
    seen = set()
    while value and value not in seen:
        seen.add(value)
        parts = _split(value)
        again = getattr(parts, field)
        if again == value:
            return value
        if not again:
            return value if _is_lone(parts, value) and _FITS[field](value) else ""
        value = again
    return ""


@lru_cache(maxsize=1024)
def parse_formatted_address(text: str) -> AddressComponents:
    """
    Split *text* into its components.

    Each component is settled: extracting the same component from it again
    yields it unchanged, so a street that re-parses as a street plus a city
    is cut back to the part that holds up.
    """
    raw = _split(_canonical(text))
    return AddressComponents(
        **{f.name: _settle(f.name, getattr(raw, f.name)) for f in fields(AddressComponents)}
    )


class FormattedAddressParser:
    """Default AddressTextParser backed by parse_formatted_address."""

    def parse(self, text: str) -> AddressComponents:
        return parse_formatted_address(text)


@lru_cache(maxsize=1024)
def _extract(field: str, text: str) -> str:
    text = _canonical(text)
    parts = _split(text)
    value = getattr(parts, field)
    if value:
        return _settle(field, value)
    # a bare component ("Mountain View", "CA") is returned when it fits the slot
    if text and _is_lone(parts, text) and _FITS[field](text):
        return text
    return ""


def extract_street_address(text: str) -> str:
    return _extract("street_address", text)


def extract_city(text: str) -> str:
    return _extract("city", text)


def extract_postcode(text: str) -> str:
    return _extract("postcode", text)


def extract_state(text: str) -> str:
    return _extract("state", text)


def extract_country(text: str) -> str:
    return _extract("country", text)
