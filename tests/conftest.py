import sys
from pathlib import Path

import pytest

# Ensure the project root is on sys.path for direct pytest runs
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


class DummyResponse:
    def __init__(self, json_data=None, status_code=200, raises=None):
        self._json = json_data
        self.status_code = status_code
        self._raises = raises

    def json(self):
        if self._raises is not None:
            raise self._raises
        return self._json


class FakeSession:
    """Stands in for requests.Session; records every request it receives."""

    def __init__(self, response=None, exc=None):
        self.response = response
        self.exc = exc
        self.calls = []

    def request(self, method, url, params=None, headers=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params or {}})
        if self.exc is not None:
            raise self.exc
        return self.response


@pytest.fixture
def dummy_response():
    return DummyResponse


@pytest.fixture
def fake_session():
    return FakeSession
