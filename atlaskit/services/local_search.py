"""
Local search engines and their cancelable handles.

The local gateway talks to any object satisfying `LocalSearchEngine`. The
default engine runs natural-language queries against OpenStreetMap Nominatim
and reports structured postal addresses for each hit.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from typing import Any, List, Optional, Protocol

import requests

from atlaskit.domain.errors import GatewayError, SearchCancelled
from atlaskit.domain.models import Coordinate, Placemark, PostalAddress
from atlaskit.services import endpoints
from atlaskit.services.http_client import fetch_json
from atlaskit.settings import settings

logger = logging.getLogger(__name__)


class LocalSearchHandle:
    """
    A single in-flight local search.

    Once `cancel()` has been called, `result()` raises SearchCancelled even if
    the engine already produced an answer, so a superseded search never
    delivers stale placemarks.
    """

    def __init__(self, future: "Future[List[Placemark]]"):
        self._future = future
        self._cancelled = threading.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        self._future.cancel()

    def result(self, timeout: Optional[float] = None) -> List[Placemark]:
        if self.cancelled:
            raise SearchCancelled()
        try:
            placemarks = self._future.result(timeout=timeout)
        except CancelledError as exc:
            raise SearchCancelled() from exc
        if self.cancelled:
            raise SearchCancelled()
        return placemarks


class LocalSearchEngine(Protocol):
    def start(self, query: str) -> LocalSearchHandle:
        ...


def _first(address: dict, *keys: str) -> str:
    for key in keys:
        value = address.get(key)
        if value:
            return str(value)
    return ""


def placemark_from_nominatim(item: Any) -> Optional[Placemark]:
    """Convert one Nominatim jsonv2 hit; returns None when it has no usable coordinate."""
    if not isinstance(item, dict):
        return None
    try:
        coordinate = Coordinate(float(item["lat"]), float(item["lon"]))
    except (KeyError, TypeError, ValueError):
        return None

    postal_address = None
    address = item.get("address")
    if isinstance(address, dict):
        # Prefer: house_number + road, falling back to other way kinds
        street_parts = [
            _first(address, "house_number"),
            _first(address, "road", "pedestrian", "footway", "street"),
        ]
        postal_address = PostalAddress(
            street=" ".join(p for p in street_parts if p),
            city=_first(address, "city", "town", "village", "hamlet"),
            postcode=_first(address, "postcode"),
            state=_first(address, "state", "county"),
            country=_first(address, "country"),
        )

    name = item.get("name") or item.get("display_name") or ""
    return Placemark(name=str(name), coordinate=coordinate, postal_address=postal_address)


class NominatimSearchEngine:
    def __init__(
        self,
        base_url: Optional[str] = None,
        limit: Optional[int] = None,
        session: Optional[requests.Session] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ):
        self.base_url = base_url or settings.NOMINATIM_BASE_URL
        self.limit = limit or settings.LOCAL_RESULT_LIMIT
        self.session = session
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="atlaskit-local"
        )

    def start(self, query: str) -> LocalSearchHandle:
        return LocalSearchHandle(self._executor.submit(self.search, query))

    def search(self, query: str) -> List[Placemark]:
        endpoint = endpoints.nominatim_search(query, self.limit, base_url=self.base_url)
        data = fetch_json(endpoint, session=self.session)
        if not isinstance(data, list):
            raise GatewayError("Nominatim search did not return a list")

        placemarks: List[Placemark] = []
        for item in data:
            placemark = placemark_from_nominatim(item)
            if placemark is not None:
                placemarks.append(placemark)
        logger.debug("Nominatim search %r got %d placemarks", query, len(placemarks))
        return placemarks


_default_engine: Optional[NominatimSearchEngine] = None


def get_default_engine() -> NominatimSearchEngine:
    global _default_engine
    if _default_engine is None:
        _default_engine = NominatimSearchEngine()
    return _default_engine
