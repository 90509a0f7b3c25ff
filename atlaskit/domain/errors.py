from enum import Enum


class ErrorKind(str, Enum):
    """Error reported to a search completion."""
    MISSING_CREDENTIAL = "missing_credential"
    GENERIC = "generic"


class AtlasKitError(Exception):
    kind: ErrorKind = ErrorKind.GENERIC

    def __init__(self, message: str = "", kind: ErrorKind | None = None):
        super().__init__(message or self.__class__.__name__)
        if kind is not None:
            self.kind = kind


class GatewayError(AtlasKitError):
    """Transport failure, non-2xx status, undecodable body or missing field."""
    kind = ErrorKind.GENERIC


class MissingCredentialError(AtlasKitError):
    """A remote provider was selected without an API key."""
    kind = ErrorKind.MISSING_CREDENTIAL


class SearchCancelled(Exception):
    """A local search was superseded before its result was consumed. Never delivered to callers."""
