import threading
from concurrent.futures import Future

import pytest
import requests

from atlaskit.domain.errors import ErrorKind, GatewayError, SearchCancelled
from atlaskit.domain.models import Coordinate, Placemark, PostalAddress
from atlaskit.services.gateways import (
    GetAddressGateway,
    GooglePlacesGateway,
    LocalSearchGateway,
)
from atlaskit.services.local_search import LocalSearchHandle


def _done_future(value=None, exc=None):
    future = Future()
    if exc is not None:
        future.set_exception(exc)
    else:
        future.set_result(value)
    return future


class StubEngine:
    """Returns pre-made handles in order and records the queries it was given."""

    def __init__(self, *handles):
        self.handles = list(handles)
        self.queries = []

    def start(self, query):
        self.queries.append(query)
        return self.handles.pop(0)


# Google Places

class TestGooglePlacesGateway:
    def test_returns_candidates(self, fake_session, dummy_response):
        body = {"candidates": [{"formatted_address": "x"}], "status": "OK"}
        session = fake_session(dummy_response(body))
        gateway = GooglePlacesGateway("secret", session=session)

        assert gateway.fetch("10 Downing St") == [{"formatted_address": "x"}]
        call = session.calls[0]
        assert call["method"] == "GET"
        assert call["params"]["input"] == "10 Downing St"
        assert call["params"]["key"] == "secret"
        assert call["params"]["inputtype"] == "textquery"

    @pytest.mark.parametrize("status", [400, 403, 500, 302])
    def test_non_2xx_is_generic_failure(self, fake_session, dummy_response, status):
        session = fake_session(dummy_response({"candidates": []}, status_code=status))
        with pytest.raises(GatewayError) as excinfo:
            GooglePlacesGateway("k", session=session).fetch("x")
        assert excinfo.value.kind == ErrorKind.GENERIC

    def test_transport_error(self, fake_session):
        session = fake_session(exc=requests.ConnectionError("boom"))
        with pytest.raises(GatewayError):
            GooglePlacesGateway("k", session=session).fetch("x")

    def test_undecodable_body(self, fake_session, dummy_response):
        session = fake_session(dummy_response(raises=ValueError("bad json")))
        with pytest.raises(GatewayError):
            GooglePlacesGateway("k", session=session).fetch("x")

    @pytest.mark.parametrize("body", [{}, {"candidates": None}, {"candidates": "x"}, ["x"]])
    def test_missing_candidates(self, fake_session, dummy_response, body):
        session = fake_session(dummy_response(body))
        with pytest.raises(GatewayError):
            GooglePlacesGateway("k", session=session).fetch("x")


# getAddress

class TestGetAddressGateway:
    BODY = {
        "latitude": 52.79,
        "longitude": -1.04,
        "addresses": ["1 The Lea,Westhorpe,,,,Loughborough,Leicestershire"],
    }

    def test_returns_payload_with_normalized_postcode(self, fake_session, dummy_response):
        session = fake_session(dummy_response(self.BODY))
        payload = GetAddressGateway("secret", session=session).fetch("  le12 6te ")

        assert payload.addresses == self.BODY["addresses"]
        assert payload.latitude == 52.79
        assert payload.longitude == -1.04
        assert payload.postcode == "LE126TE"
        call = session.calls[0]
        assert call["url"].endswith("/le12%206te")
        assert call["params"] == {"api-key": "secret"}

    def test_integer_coordinates_accepted(self, fake_session, dummy_response):
        body = {**self.BODY, "latitude": 52, "longitude": -1}
        payload = GetAddressGateway("k", session=fake_session(dummy_response(body))).fetch("x")
        assert payload.latitude == 52.0

    @pytest.mark.parametrize("missing", ["addresses", "latitude", "longitude"])
    def test_missing_required_field(self, fake_session, dummy_response, missing):
        body = {k: v for k, v in self.BODY.items() if k != missing}
        with pytest.raises(GatewayError):
            GetAddressGateway("k", session=fake_session(dummy_response(body))).fetch("x")

    @pytest.mark.parametrize(
        "override",
        [{"addresses": [1, 2]}, {"latitude": "52.1"}, {"longitude": True}, {"latitude": float("nan")}],
    )
    def test_wrongly_typed_field(self, fake_session, dummy_response, override):
        body = {**self.BODY, **override}
        with pytest.raises(GatewayError):
            GetAddressGateway("k", session=fake_session(dummy_response(body))).fetch("x")

    def test_non_2xx(self, fake_session, dummy_response):
        session = fake_session(dummy_response(self.BODY, status_code=404))
        with pytest.raises(GatewayError):
            GetAddressGateway("k", session=session).fetch("x")

    def test_unencodable_term_fails_before_io(self, fake_session, dummy_response):
        session = fake_session(dummy_response(self.BODY))
        with pytest.raises(GatewayError):
            GetAddressGateway("k", session=session).fetch("bad \udcff term")
        assert session.calls == []


# Local search

class TestLocalSearchGateway:
    def test_filters_placemarks_without_postal_address(self):
        with_address = Placemark(
            name="Hall",
            coordinate=Coordinate(1.0, 2.0),
            postal_address=PostalAddress(street="Ashby Road"),
        )
        without = Placemark(name="Field", coordinate=Coordinate(3.0, 4.0))
        engine = StubEngine(LocalSearchHandle(_done_future([with_address, without])))

        assert LocalSearchGateway(engine).fetch("hall").placemarks == [with_address]
        assert engine.queries == ["hall"]

    def test_new_search_cancels_previous_handle(self):
        release = threading.Event()
        slow = Future()
        first = LocalSearchHandle(slow)
        second = LocalSearchHandle(_done_future([]))
        engine = StubEngine(first, second)
        gateway = LocalSearchGateway(engine)
        outcome = {}

        def run_first():
            try:
                outcome["first"] = gateway.fetch("a")
            except SearchCancelled:
                outcome["first"] = "cancelled"
            release.set()

        worker = threading.Thread(target=run_first)
        worker.start()
        while not engine.queries:
            threading.Event().wait(0.01)

        assert gateway.fetch("b").placemarks == []
        assert release.wait(2)
        worker.join(2)
        assert first.cancelled
        assert outcome["first"] == "cancelled"

    def test_cancelled_handle_never_returns_result(self):
        handle = LocalSearchHandle(_done_future(["stale"]))
        handle.cancel()
        with pytest.raises(SearchCancelled):
            handle.result()

    def test_engine_http_failure_becomes_gateway_error(self):
        engine = StubEngine(LocalSearchHandle(_done_future(exc=requests.Timeout())))
        with pytest.raises(GatewayError):
            LocalSearchGateway(engine).fetch("x")

    def test_finished_search_is_still_superseded_by_newer_one(self):
        engine = StubEngine(
            LocalSearchHandle(_done_future([])),
            LocalSearchHandle(_done_future([])),
        )
        gateway = LocalSearchGateway(engine)

        first = gateway.fetch("a")
        assert not first.cancelled
        second = gateway.fetch("b")

        assert first.cancelled
        assert not second.cancelled

    def test_cancel_racing_the_result_drops_it(self):
        class RacingHandle(LocalSearchHandle):
            def result(self, timeout=None):
                placemarks = super().result(timeout)
                self.cancel()
                return placemarks

        engine = StubEngine(RacingHandle(_done_future(["stale"])))
        with pytest.raises(SearchCancelled):
            LocalSearchGateway(engine).fetch("x")
