import logging
import os
from pathlib import Path

from dotenv import load_dotenv

from atlaskit.domain.models import ProviderConfig, provider_from_name

# Load environment variables from a project-level .env (optional) before reading them
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

logger = logging.getLogger(__name__)

DEFAULT_GOOGLE_PLACES_URL = "https://maps.googleapis.com/maps/api/place/findplacefromtext/json"
DEFAULT_GETADDRESS_URL = "https://api.getaddress.io/find"
DEFAULT_NOMINATIM_BASE_URL = "https://nominatim.openstreetmap.org"


def _as_float(val: str | None, default: float) -> float:
    if val is None or not val.strip():
        return default
    try:
        return float(val)
    except ValueError:
        logger.warning("Ignoring non-numeric setting value %r, using %s", val, default)
        return default


def _as_int(val: str | None, default: int) -> int:
    return int(_as_float(val, float(default)))


def _as_str(val: str | None) -> str | None:
    if val is None or not val.strip():
        return None
    return val.strip()


class Settings:
    def __init__(self) -> None:
        self.PROVIDER: str = os.getenv("ATLASKIT_PROVIDER", "local")
        self.GOOGLE_API_KEY: str | None = _as_str(os.getenv("ATLASKIT_GOOGLE_API_KEY"))
        self.GETADDRESS_API_KEY: str | None = _as_str(os.getenv("ATLASKIT_GETADDRESS_API_KEY"))
        self.HTTP_TIMEOUT_SECONDS: float = _as_float(os.getenv("ATLASKIT_HTTP_TIMEOUT"), 10.0)
        self.SEARCH_DELAY_SECONDS: float = _as_float(os.getenv("ATLASKIT_SEARCH_DELAY"), 0.5)
        self.USER_AGENT: str = os.getenv("ATLASKIT_USER_AGENT", "atlaskit/0.1")
        self.LOCAL_RESULT_LIMIT: int = _as_int(os.getenv("ATLASKIT_LOCAL_RESULT_LIMIT"), 10)
        self.NOMINATIM_BASE_URL: str = os.getenv("NOMINATIM_BASE_URL", DEFAULT_NOMINATIM_BASE_URL)
        self.GOOGLE_PLACES_URL: str = os.getenv("GOOGLE_PLACES_URL", DEFAULT_GOOGLE_PLACES_URL)
        self.GETADDRESS_URL: str = os.getenv("GETADDRESS_URL", DEFAULT_GETADDRESS_URL)

    def api_key_for(self, provider_name: str) -> str | None:
        name = provider_name.strip().lower()
        if name == "google":
            return self.GOOGLE_API_KEY
        if name == "getaddress":
            return self.GETADDRESS_API_KEY
        return None


def provider_from_settings(config: "Settings | None" = None) -> ProviderConfig:
    """Build the provider selected by ATLASKIT_PROVIDER with its credential from the environment."""
    config = config or settings
    return provider_from_name(config.PROVIDER, config.api_key_for(config.PROVIDER))


settings = Settings()
