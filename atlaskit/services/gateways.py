"""Provider gateways: one per backend, all exposing `fetch(term)`.

A gateway builds the request, performs it (blocking) and validates the
top-level shape of the response. Item-level validation belongs to the
normalizers. Any failure is raised as GatewayError; the local gateway may also
raise SearchCancelled when a newer search superseded it.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass
from numbers import Real
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from atlaskit.domain.errors import GatewayError, SearchCancelled
from atlaskit.domain.models import Placemark
from atlaskit.services import endpoints
from atlaskit.services.http_client import fetch_json_object
from atlaskit.services.local_search import LocalSearchEngine, LocalSearchHandle
from atlaskit.services.normalizers import normalize_postcode

logger = logging.getLogger(__name__)

# RFC 3986 path characters that stay unescaped
_PATH_SAFE = "/:@!$&'()*+,;=-._~"


@dataclass(frozen=True)
class GetAddressPayload:
    addresses: List[str]
    latitude: float
    longitude: float
    postcode: str


@dataclass(frozen=True)
class LocalSearchPayload:
    """Placemarks from one local search, still tied to the handle that produced them."""
    placemarks: List[Placemark]
    handle: LocalSearchHandle

    @property
    def cancelled(self) -> bool:
        return self.handle.cancelled


class LocalSearchGateway:
    """
    Runs natural-language queries through a local search engine.

    Only one search is live at a time: starting a new one cancels the previous
    handle, whose fetch then raises SearchCancelled instead of returning. The
    handle stays live after its result arrives, so a search that is still
    being normalized can be superseded too; check `payload.cancelled` before
    delivering.
    """

    def __init__(self, engine: LocalSearchEngine):
        self.engine = engine
        self._lock = threading.Lock()
        self._active: Optional[LocalSearchHandle] = None

    def fetch(self, term: str) -> LocalSearchPayload:
        with self._lock:
            if self._active is not None:
                logger.debug("Cancelling superseded local search")
                self._active.cancel()
            handle = self.engine.start(term)
            self._active = handle

        try:
            placemarks = handle.result()
        except requests.RequestException as exc:
            self._release(handle)
            raise GatewayError(f"local search failed: {exc.__class__.__name__}") from exc
        except Exception:
            self._release(handle)
            raise
        if handle.cancelled:
            raise SearchCancelled()

        return LocalSearchPayload(
            placemarks=[p for p in placemarks or [] if p.postal_address is not None],
            handle=handle,
        )

    def _release(self, handle: LocalSearchHandle) -> None:
        with self._lock:
            if self._active is handle:
                self._active = None


class GooglePlacesGateway:
    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key
        self.session = session
        self.base_url = base_url

    def fetch(self, term: str) -> List[Any]:
        endpoint = endpoints.google_places_search(term, self.api_key, base_url=self.base_url)
        data = fetch_json_object(endpoint, session=self.session)
        candidates = data.get("candidates")
        if not isinstance(candidates, list):
            logger.warning("Google Places response for %r has no candidates list", term)
            raise GatewayError("missing 'candidates'")
        return candidates


def _require_number(data: Dict[str, Any], key: str) -> float:
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, Real) or not math.isfinite(value):
        raise GatewayError(f"missing or non-numeric '{key}'")
    return float(value)


class GetAddressGateway:
    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: Optional[str] = None,
    ):
        self.api_key = api_key
        self.session = session
        self.base_url = base_url

    def fetch(self, term: str) -> GetAddressPayload:
        try:
            encoded = quote(term.strip(), safe=_PATH_SAFE)
        except (UnicodeError, TypeError, AttributeError) as exc:
            raise GatewayError("search term could not be encoded") from exc

        endpoint = endpoints.getaddress_search(encoded, self.api_key, base_url=self.base_url)
        data = fetch_json_object(endpoint, session=self.session)

        addresses = data.get("addresses")
        if not isinstance(addresses, list) or not all(isinstance(a, str) for a in addresses):
            logger.warning("getAddress response for %r has no addresses list", term)
            raise GatewayError("missing 'addresses'")
        latitude = _require_number(data, "latitude")
        longitude = _require_number(data, "longitude")

        return GetAddressPayload(
            addresses=addresses,
            latitude=latitude,
            longitude=longitude,
            postcode=normalize_postcode(term),
        )
