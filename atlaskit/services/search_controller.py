"""
Single entry point for address searches.

The controller owns the provider choice, the debounce timer and the worker
threads. Results always reach the caller through `completion(records, error)`
on the completion executor, never from inside the call that started the
search.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Tuple

import requests

from atlaskit.domain.errors import AtlasKitError, ErrorKind, SearchCancelled
from atlaskit.domain.models import (
    AddressRecord,
    GetAddressProvider,
    GooglePlacesProvider,
    LocalProvider,
    ProviderConfig,
    provider_api_key,
)
from atlaskit.services.address_text import AddressTextParser
from atlaskit.services.gateways import (
    GetAddressGateway,
    GetAddressPayload,
    GooglePlacesGateway,
    LocalSearchGateway,
    LocalSearchPayload,
)
from atlaskit.services.local_search import LocalSearchEngine, get_default_engine
from atlaskit.services.normalizers import (
    normalize_address_lines,
    normalize_candidates,
    normalize_placemarks,
)
from atlaskit.settings import settings

logger = logging.getLogger(__name__)

Completion = Callable[[Optional[List[AddressRecord]], Optional[ErrorKind]], None]


class SearchController:
    """
    Dispatches searches to the configured provider.

    - `search` runs a lookup now and cancels any pending delayed search.
    - `search_with_delay` debounces: only the latest call within the delay fires.
    - `cancel_search` drops the pending delayed search; requests already sent
      still complete.

    Every accepted search calls its completion exactly once with either a
    (possibly empty) record list or an ErrorKind. Delayed searches that are
    replaced or cancelled before firing never call it. A local search
    superseded by a newer local search is dropped as well. Once `close` has
    been called, new searches are rejected: `search` returns None and the
    completion is not called.
    """

    def __init__(
        self,
        provider: ProviderConfig,
        *,
        local_engine: Optional[LocalSearchEngine] = None,
        session: Optional[requests.Session] = None,
        parser: Optional[AddressTextParser] = None,
        completion_executor: Optional[Executor] = None,
        max_workers: int = 4,
    ):
        self.provider = provider
        self.parser = parser
        self._workers = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="atlaskit-search"
        )
        self._owns_completions = completion_executor is None
        self._completions = completion_executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="atlaskit-completion"
        )
        self._lock = threading.Lock()
        self._pending: Optional[Tuple[object, threading.Timer]] = None
        self._closed = False
        self._gateway = self._build_gateway(provider, local_engine, session)

    # Provider dispatch

    def _build_gateway(
        self,
        provider: ProviderConfig,
        local_engine: Optional[LocalSearchEngine],
        session: Optional[requests.Session],
    ) -> Any:
        if isinstance(provider, LocalProvider):
            return LocalSearchGateway(local_engine or get_default_engine())
        if isinstance(provider, GooglePlacesProvider):
            key = provider_api_key(provider)
            return GooglePlacesGateway(key, session=session) if key else None
        if isinstance(provider, GetAddressProvider):
            key = provider_api_key(provider)
            return GetAddressGateway(key, session=session) if key else None
        raise TypeError(f"Unsupported provider config: {provider!r}")

    def _normalize(self, payload: Any) -> List[AddressRecord]:
        provider = self.provider
        if isinstance(provider, LocalProvider):
            local: LocalSearchPayload = payload
            return normalize_placemarks(local.placemarks)
        if isinstance(provider, GooglePlacesProvider):
            return normalize_candidates(payload, parser=self.parser)
        if isinstance(provider, GetAddressProvider):
            result: GetAddressPayload = payload
            return normalize_address_lines(
                result.addresses, result.postcode, result.latitude, result.longitude
            )
        raise TypeError(f"Unsupported provider config: {provider!r}")

    # Public API

    def search(self, term: str, completion: Completion) -> Optional[Future]:
        """Search for *term* now. Returns the worker future, or None when no request was issued."""
        self.cancel_search()
        return self._start(term, completion)

    def search_with_delay(
        self,
        term: str,
        completion: Completion,
        delay: Optional[float] = None,
    ) -> None:
        """Search for *term* after *delay* seconds unless replaced or cancelled first."""
        delay = settings.SEARCH_DELAY_SECONDS if delay is None else delay
        token = object()
        timer = threading.Timer(delay, self._fire_delayed, args=(token, term, completion))
        timer.daemon = True
        with self._lock:
            if self._pending is not None:
                self._pending[1].cancel()
            self._pending = (token, timer)
            timer.start()

    def cancel_search(self) -> None:
        with self._lock:
            pending, self._pending = self._pending, None
        if pending is not None:
            pending[1].cancel()
            logger.debug("Cancelled pending delayed search")

    def close(self, wait: bool = True) -> None:
        """Stop accepting searches; later calls to `search` return None and never complete."""
        self._closed = True
        self.cancel_search()
        self._workers.shutdown(wait=wait)
        if self._owns_completions:
            self._completions.shutdown(wait=wait)

    def __enter__(self) -> "SearchController":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # Internals

    def _fire_delayed(self, token: object, term: str, completion: Completion) -> None:
        with self._lock:
            # a replaced or cancelled timer may still wake up; only the slot owner runs
            if self._pending is None or self._pending[0] is not token:
                return
            self._pending = None
        self._start(term, completion)

    def _start(self, term: str, completion: Completion) -> Optional[Future]:
        if self._closed:
            logger.warning("Search %r rejected: controller is closed", term)
            return None
        if self._gateway is None:
            logger.warning(
                "%s selected without an API key; not searching", type(self.provider).__name__
            )
            self._deliver(completion, None, ErrorKind.MISSING_CREDENTIAL)
            return None
        logger.debug("Dispatching search %r to %s", term, type(self._gateway).__name__)
        try:
            return self._workers.submit(self._run, term, completion)
        except RuntimeError:
            logger.warning("Search %r rejected: controller is closed", term)
            return None

    def _run(self, term: str, completion: Completion) -> None:
        try:
            payload = self._gateway.fetch(term)
            records = self._normalize(payload)
            if isinstance(payload, LocalSearchPayload) and payload.cancelled:
                raise SearchCancelled()
        except SearchCancelled:
            logger.debug("Search %r was superseded; dropping its result", term)
            return
        except AtlasKitError as exc:
            logger.debug("Search %r failed: %s", term, exc)
            self._deliver(completion, None, exc.kind)
            return
        except Exception:
            logger.exception("Unexpected error while searching for %r", term)
            self._deliver(completion, None, ErrorKind.GENERIC)
            return
        logger.debug("Search %r returned %d records", term, len(records))
        self._deliver(completion, records, None)

    def _deliver(
        self,
        completion: Completion,
        records: Optional[List[AddressRecord]],
        error: Optional[ErrorKind],
    ) -> None:
        try:
            self._completions.submit(self._invoke, completion, records, error)
        except RuntimeError:
            logger.warning("Completion executor is shut down; dropping search result")

    @staticmethod
    def _invoke(
        completion: Completion,
        records: Optional[List[AddressRecord]],
        error: Optional[ErrorKind],
    ) -> None:
        try:
            completion(records, error)
        except Exception:
            logger.exception("Search completion raised")
