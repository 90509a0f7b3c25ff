import json

from atlaskit.domain.errors import ErrorKind
from atlaskit.domain.models import (
    AddressRecord,
    Coordinate,
    GetAddressProvider,
    GooglePlacesProvider,
    LocalProvider,
)
from atlaskit.scripts import search_cli
from atlaskit.settings import Settings, provider_from_settings


def test_settings_defaults(monkeypatch):
    for name in (
        "ATLASKIT_PROVIDER",
        "ATLASKIT_GOOGLE_API_KEY",
        "ATLASKIT_HTTP_TIMEOUT",
        "ATLASKIT_SEARCH_DELAY",
    ):
        monkeypatch.delenv(name, raising=False)
    config = Settings()
    assert config.PROVIDER == "local"
    assert config.GOOGLE_API_KEY is None
    assert config.HTTP_TIMEOUT_SECONDS == 10.0
    assert config.SEARCH_DELAY_SECONDS == 0.5
    assert provider_from_settings(config) == LocalProvider()


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("ATLASKIT_PROVIDER", "google")
    monkeypatch.setenv("ATLASKIT_GOOGLE_API_KEY", " g-key ")
    monkeypatch.setenv("ATLASKIT_SEARCH_DELAY", "0.25")
    monkeypatch.setenv("ATLASKIT_HTTP_TIMEOUT", "not-a-number")
    config = Settings()
    assert config.SEARCH_DELAY_SECONDS == 0.25
    assert config.HTTP_TIMEOUT_SECONDS == 10.0
    assert provider_from_settings(config) == GooglePlacesProvider(api_key="g-key")


def test_settings_getaddress_without_key(monkeypatch):
    monkeypatch.setenv("ATLASKIT_PROVIDER", "getaddress")
    monkeypatch.setenv("ATLASKIT_GETADDRESS_API_KEY", "")
    assert provider_from_settings(Settings()) == GetAddressProvider(api_key=None)


class FakeController:
    """Replaces SearchController in the CLI; answers immediately with a canned outcome."""

    outcome = ([], None)
    providers = []

    def __init__(self, provider):
        FakeController.providers.append(provider)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None

    def search(self, term, completion):
        completion(*self.outcome)


def test_cli_prints_formatted_addresses(monkeypatch, capsys):
    record = AddressRecord("10 Downing St", "London", "SW1A 2AA", "", "UK", Coordinate(51.5, -0.12))
    FakeController.outcome = ([record], None)
    FakeController.providers = []
    monkeypatch.setattr(search_cli, "SearchController", FakeController)

    exit_code = search_cli.main(["downing", "--provider", "google", "--api-key", "k"])

    assert exit_code == 0
    assert capsys.readouterr().out.strip() == "10 Downing St, London, SW1A 2AA, UK"
    assert FakeController.providers == [GooglePlacesProvider(api_key="k")]


def test_cli_json_output(monkeypatch, capsys):
    record = AddressRecord("1 The Lea", "Loughborough", "LE126TE", "", "United Kingdom", Coordinate(52.8, -1.0))
    FakeController.outcome = ([record], None)
    monkeypatch.setattr(search_cli, "SearchController", FakeController)

    assert search_cli.main(["le12 6te", "--provider", "local", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data[0]["postcode"] == "LE126TE"
    assert data[0]["latitude"] == 52.8


def test_cli_reports_errors(monkeypatch, capsys):
    FakeController.outcome = (None, ErrorKind.MISSING_CREDENTIAL)
    monkeypatch.setattr(search_cli, "SearchController", FakeController)

    assert search_cli.main(["x", "--provider", "getaddress"]) == 1
    assert "missing_credential" in capsys.readouterr().err
