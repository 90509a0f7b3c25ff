"""Shared HTTP transport for the remote gateways.

Every failure (transport error, non-2xx status, undecodable or non-object
body) is collapsed into a GatewayError; callers only learn that the request
failed. Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from atlaskit.domain.errors import GatewayError
from atlaskit.services.endpoints import Endpoint
from atlaskit.settings import settings

logger = logging.getLogger(__name__)
_session = requests.Session()

DEFAULT_HEADERS = {
    "User-Agent": settings.USER_AGENT,
    "Accept": "application/json",
}


def send(
    endpoint: Endpoint,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> requests.Response:
    """Issue the request described by *endpoint*; raises GatewayError on transport failure or non-2xx."""
    http = session or _session
    try:
        resp = http.request(
            endpoint.method,
            endpoint.url,
            params=endpoint.params,
            headers=DEFAULT_HEADERS,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
        )
    except requests.RequestException as exc:
        # endpoint.params carry the api key, so only the bare URL is logged
        logger.warning("Request to %s failed: %s", endpoint.url, exc.__class__.__name__)
        raise GatewayError(f"transport error: {exc.__class__.__name__}") from exc

    if resp is None or not (200 <= resp.status_code < 300):
        status = getattr(resp, "status_code", None)
        logger.warning("Upstream HTTP error %s from %s", status, endpoint.url)
        raise GatewayError(f"upstream returned status {status}")
    return resp


def fetch_json_object(
    endpoint: Endpoint,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """Fetch *endpoint* and decode its body as a JSON object."""
    resp = send(endpoint, session=session, timeout=timeout)
    try:
        data = resp.json()
    except ValueError as exc:
        logger.warning("Undecodable JSON body from %s", endpoint.url)
        raise GatewayError("undecodable response body") from exc
    if not isinstance(data, dict):
        logger.warning("Expected a JSON object from %s, got %s", endpoint.url, type(data).__name__)
        raise GatewayError("response body is not a JSON object")
    return data


def fetch_json(
    endpoint: Endpoint,
    *,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> Any:
    """Like fetch_json_object, but any JSON value is accepted."""
    resp = send(endpoint, session=session, timeout=timeout)
    try:
        return resp.json()
    except ValueError as exc:
        logger.warning("Undecodable JSON body from %s", endpoint.url)
        raise GatewayError("undecodable response body") from exc
