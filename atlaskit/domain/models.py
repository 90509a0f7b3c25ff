"""
Core domain models for address lookup.
These are provider-agnostic and shared by every gateway and normalizer.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

FORMATTED_ADDRESS_SEPARATOR = ", "


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point."""
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValueError(
                f"Coordinate must be finite, got ({self.latitude}, {self.longitude})"
            )


@dataclass(frozen=True)
class AddressRecord:
    """
    One resolved address, identical in shape for every provider.

    Built by a normalizer from a single raw provider item and never mutated
    afterwards. `formatted_address` is derived from the fields and is only
    used for display and sorting.
    """
    street_address: str
    city: str
    postcode: str
    state: str
    country: str
    location: Coordinate

    @property
    def formatted_address(self) -> str:
        parts = [self.street_address, self.city, self.postcode, self.state, self.country]
        return FORMATTED_ADDRESS_SEPARATOR.join(p for p in parts if p)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "street_address": self.street_address,
            "city": self.city,
            "postcode": self.postcode,
            "state": self.state,
            "country": self.country,
            "formatted_address": self.formatted_address,
            "latitude": self.location.latitude,
            "longitude": self.location.longitude,
        }


@dataclass(frozen=True)
class PostalAddress:
    """Structured postal address as reported by a local search engine."""
    street: str = ""
    city: str = ""
    postcode: str = ""
    state: str = ""
    country: str = ""


@dataclass(frozen=True)
class Placemark:
    """A local search candidate. `postal_address` is None when the engine has no address for it."""
    name: str
    coordinate: Coordinate
    postal_address: Optional[PostalAddress] = None


# Provider selection

@dataclass(frozen=True)
class LocalProvider:
    """Search through the local search engine; needs no credential."""


@dataclass(frozen=True)
class GooglePlacesProvider:
    api_key: Optional[str] = None


@dataclass(frozen=True)
class GetAddressProvider:
    api_key: Optional[str] = None


ProviderConfig = Union[LocalProvider, GooglePlacesProvider, GetAddressProvider]

_PROVIDER_NAMES = {
    "local": LocalProvider,
    "apple": LocalProvider,  # MapKit-style alias
    "google": GooglePlacesProvider,
    "getaddress": GetAddressProvider,
}


def provider_from_name(name: str, api_key: Optional[str] = None) -> ProviderConfig:
    """
    Build a provider config from its short name.

    Args:
        name: One of "local" (or "apple"), "google", "getaddress".
        api_key: Credential for the remote providers; ignored for local.

    Raises:
        ValueError: If the name is unknown.
    """
    key = (name or "").strip().lower()
    provider_cls = _PROVIDER_NAMES.get(key)
    if provider_cls is None:
        raise ValueError(
            f"Unknown provider '{name}', expected one of: {', '.join(sorted(_PROVIDER_NAMES))}"
        )
    if provider_cls is LocalProvider:
        return LocalProvider()
    return provider_cls(api_key=api_key)


def provider_api_key(provider: ProviderConfig) -> Optional[str]:
    """Return the usable credential for a remote provider, or None when it is absent or blank."""
    key = getattr(provider, "api_key", None)
    if key is None or not key.strip():
        return None
    return key
