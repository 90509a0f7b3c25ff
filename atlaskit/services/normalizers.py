"""
Per-provider normalization of raw payloads into sorted AddressRecord lists.

All functions here are pure and total over their input shape: malformed items
are dropped, never raised. Output is always sorted by `natural_sort_key` of
the record's formatted address.
"""
from __future__ import annotations

import math
import re
import unicodedata
from numbers import Real
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from atlaskit.domain.models import AddressRecord, Coordinate, Placemark
from atlaskit.services.address_text import AddressTextParser, FormattedAddressParser

GETADDRESS_COUNTRY = "United Kingdom"

_DIGIT_RUNS = re.compile(r"(\d+)")
_DEFAULT_PARSER = FormattedAddressParser()


def natural_sort_key(text: str) -> Tuple[Tuple[Any, ...], str]:
    """
    Case- and accent-insensitive ordering that compares digit runs by value.

    "2 High St" sorts before "10 High St". The raw string is the final
    tie-break so two different strings never compare equal.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    folded = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    chunks = _DIGIT_RUNS.split(folded)
    # split() alternates text/digits starting with text, so positions line up across keys
    key = tuple(int(chunk) if i % 2 else chunk for i, chunk in enumerate(chunks))
    return key, text


def sort_records(records: Iterable[AddressRecord]) -> List[AddressRecord]:
    return sorted(records, key=lambda r: natural_sort_key(r.formatted_address))


def _as_finite_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def normalize_postcode(postcode: str) -> str:
    """Upper-case and drop every whitespace character."""
    return "".join(ch for ch in postcode if not ch.isspace()).upper()


# Local placemarks

def normalize_placemarks(placemarks: Iterable[Placemark]) -> List[AddressRecord]:
    records = []
    for placemark in placemarks:
        address = getattr(placemark, "postal_address", None)
        if address is None:
            continue
        records.append(
            AddressRecord(
                street_address=address.street,
                city=address.city,
                postcode=address.postcode,
                state=address.state,
                country=address.country,
                location=placemark.coordinate,
            )
        )
    return sort_records(records)


# getAddress.io lines

def _fragment(fragments: Sequence[str], index: int) -> str:
    return fragments[index].strip() if index < len(fragments) else ""


def parse_address_line(
    line: str,
    postcode: str,
    location: Coordinate,
) -> AddressRecord:
    """
    Map one getAddress line onto an AddressRecord.

    Fragments by position: 0-3 street lines, 4 locality, 5 town/city, 6 county.
    The locality takes the first blank slot of lines 3 and 4 (index 2, then
    index 3) and is dropped when both are filled.
    """
    fragments = line.split(",")
    lines = [_fragment(fragments, i) for i in range(4)]
    locality = _fragment(fragments, 4)

    if not lines[2]:
        lines[2] = locality
    elif not lines[3]:
        lines[3] = locality

    return AddressRecord(
        street_address=", ".join(part for part in lines if part),
        city=_fragment(fragments, 5),
        postcode=postcode,
        state=_fragment(fragments, 6),
        country=GETADDRESS_COUNTRY,
        location=location,
    )


def normalize_address_lines(
    lines: Iterable[str],
    postcode: str,
    latitude: float,
    longitude: float,
) -> List[AddressRecord]:
    """One record per address line, all placed at the payload coordinate.

    A coordinate that is not a finite number yields no records.
    """
    lat, lng = _as_finite_number(latitude), _as_finite_number(longitude)
    if lat is None or lng is None:
        return []
    location = Coordinate(lat, lng)
    records = [
        parse_address_line(line, postcode, location)
        for line in lines
        if isinstance(line, str)
    ]
    return sort_records(records)


# Google Places candidates

def _candidate_fields(item: Any) -> Optional[Tuple[str, float, float]]:
    if not isinstance(item, dict):
        return None
    formatted = item.get("formatted_address")
    geometry = item.get("geometry")
    if not isinstance(formatted, str) or not isinstance(geometry, dict):
        return None
    location = geometry.get("location")
    if not isinstance(location, dict):
        return None
    lat = _as_finite_number(location.get("lat"))
    lng = _as_finite_number(location.get("lng"))
    if lat is None or lng is None:
        return None
    return formatted, lat, lng


def normalize_candidates(
    candidates: Iterable[Any],
    parser: Optional[AddressTextParser] = None,
) -> List[AddressRecord]:
    parser = parser or _DEFAULT_PARSER
    records = []
    for item in candidates:
        fields = _candidate_fields(item)
        if fields is None:
            continue
        formatted, lat, lng = fields
        components = parser.parse(formatted)
        record = AddressRecord(
            street_address=components.street_address,
            city=components.city,
            postcode=components.postcode,
            state=components.state,
            country=components.country,
            location=Coordinate(lat, lng),
        )
        if record.formatted_address:
            records.append(record)
    return sort_records(records)
