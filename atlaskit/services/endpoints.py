"""
Request construction for the remote geocoding providers.

Each builder is deterministic: the same (term, api_key) always yields the same
endpoint. The term is used as given; any trimming or encoding is the caller's job.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from atlaskit.settings import settings


@dataclass(frozen=True)
class Endpoint:
    url: str
    method: str = "GET"
    params: Dict[str, str] = field(default_factory=dict)


def google_places_search(term: str, api_key: str, base_url: Optional[str] = None) -> Endpoint:
    return Endpoint(
        url=base_url or settings.GOOGLE_PLACES_URL,
        params={
            "input": term,
            "inputtype": "textquery",
            "fields": "formatted_address,geometry",
            "key": api_key,
        },
    )


def getaddress_search(encoded_term: str, api_key: str, base_url: Optional[str] = None) -> Endpoint:
    # the term is already percent-encoded and goes into the path
    base = (base_url or settings.GETADDRESS_URL).rstrip("/")
    return Endpoint(url=f"{base}/{encoded_term}", params={"api-key": api_key})


def nominatim_search(term: str, limit: int, base_url: Optional[str] = None) -> Endpoint:
    base = (base_url or settings.NOMINATIM_BASE_URL).rstrip("/")
    if base.endswith("/search") or base.endswith("/reverse"):
        base = base.rsplit("/", 1)[0]
    return Endpoint(
        url=f"{base}/search",
        params={
            "q": term,
            "format": "jsonv2",
            "addressdetails": "1",
            "limit": str(limit),
        },
    )
