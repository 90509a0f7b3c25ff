from .errors import (
    AtlasKitError,
    ErrorKind,
    GatewayError,
    MissingCredentialError,
    SearchCancelled,
)
from .models import (
    AddressRecord,
    Coordinate,
    GetAddressProvider,
    GooglePlacesProvider,
    LocalProvider,
    Placemark,
    PostalAddress,
    ProviderConfig,
    provider_api_key,
    provider_from_name,
)

__all__ = [
    "AddressRecord",
    "AtlasKitError",
    "Coordinate",
    "ErrorKind",
    "GatewayError",
    "GetAddressProvider",
    "GooglePlacesProvider",
    "LocalProvider",
    "MissingCredentialError",
    "Placemark",
    "PostalAddress",
    "ProviderConfig",
    "SearchCancelled",
    "provider_api_key",
    "provider_from_name",
]
