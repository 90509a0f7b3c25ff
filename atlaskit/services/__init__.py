from .gateways import GetAddressGateway, GooglePlacesGateway, LocalSearchGateway
from .search_controller import SearchController

__all__ = [
    "GetAddressGateway",
    "GooglePlacesGateway",
    "LocalSearchGateway",
    "SearchController",
]
