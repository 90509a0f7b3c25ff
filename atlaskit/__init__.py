"""
Unified address lookup over interchangeable geocoding providers.
"""
from atlaskit.domain import (
    AddressRecord,
    Coordinate,
    ErrorKind,
    GetAddressProvider,
    GooglePlacesProvider,
    LocalProvider,
    provider_from_name,
)
from atlaskit.services.search_controller import SearchController

__all__ = [
    "AddressRecord",
    "Coordinate",
    "ErrorKind",
    "GetAddressProvider",
    "GooglePlacesProvider",
    "LocalProvider",
    "SearchController",
    "provider_from_name",
]
