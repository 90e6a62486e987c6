from unittest.mock import MagicMock

import pytest
import requests

from domain.errors import MalformedResponseError, TransportError
from services import geocoding as geo
from services.geocoding import NominatimClient, _redact_email


def _client(session, **kwargs):
    kwargs.setdefault("base_url", "https://geo.example.test/")
    kwargs.setdefault("user_agent", "AquaNova/1.0 (ops@example.com)")
    kwargs.setdefault("min_interval_sec", 0)
    return NominatimClient(session=session, **kwargs)


def _response(json_data=None, status_code=200, json_error=None):
    resp = MagicMock()
    resp.status_code = status_code
    if json_error is not None:
        resp.json.side_effect = json_error
    else:
        resp.json.return_value = json_data
    return resp


def test_search_sends_expected_params_and_headers():
    session = MagicMock()
    session.get.return_value = _response([{"place_id": 1}])

    client = _client(session, referer="https://aquanova.example")
    result = client.search("Altamira Venezuela", language="es", country_codes="ve")

    assert result == [{"place_id": 1}]
    args, kwargs = session.get.call_args
    assert args[0] == "https://geo.example.test/search"
    assert kwargs["params"] == {
        "q": "Altamira Venezuela",
        "format": "json",
        "addressdetails": "1",
        "limit": "10",
        "accept-language": "es",
        "countrycodes": "ve",
    }
    assert kwargs["headers"]["User-Agent"] == "AquaNova/1.0 (ops@example.com)"
    assert kwargs["headers"]["Referer"] == "https://aquanova.example"
    assert kwargs["timeout"] is None


def test_search_omits_blank_country_codes():
    session = MagicMock()
    session.get.return_value = _response([])
    _client(session).search("x", language="es", country_codes="")
    assert "countrycodes" not in session.get.call_args.kwargs["params"]


def test_non_2xx_raises_transport_error():
    session = MagicMock()
    session.get.return_value = _response(status_code=503)
    with pytest.raises(TransportError) as info:
        _client(session).search("x", language="es", country_codes="ve")
    assert info.value.status_code == 503


def test_network_failure_raises_transport_error():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(TransportError):
        _client(session).details("123")


def test_invalid_json_raises_malformed_response():
    session = MagicMock()
    session.get.return_value = _response(json_error=ValueError("Expecting value"))
    with pytest.raises(MalformedResponseError):
        _client(session).search("x", language="es", country_codes="ve")


def test_search_requires_list_body():
    session = MagicMock()
    session.get.return_value = _response({"error": "nope"})
    with pytest.raises(MalformedResponseError):
        _client(session).search("x", language="es", country_codes="ve")


def test_details_and_reverse_params():
    session = MagicMock()
    session.get.return_value = _response({"place_id": 9})
    client = _client(session)

    client.details("9", language="es")
    assert session.get.call_args.args[0].endswith("/details")
    assert session.get.call_args.kwargs["params"] == {
        "place_id": "9",
        "format": "json",
        "accept-language": "es",
    }

    client.reverse(10.5, -66.9, language="es")
    params = session.get.call_args.kwargs["params"]
    assert session.get.call_args.args[0].endswith("/reverse")
    assert params["format"] == "jsonv2"
    assert params["lat"] == "10.5"
    assert params["lon"] == "-66.9"
    assert params["addressdetails"] == "1"


def test_throttle_waits_between_requests(monkeypatch):
    session = MagicMock()
    session.get.return_value = _response([])
    sleeps = []
    clock = iter([100.0, 100.0, 100.2, 100.2])
    fake_time = MagicMock()
    fake_time.monotonic.side_effect = lambda: next(clock)
    fake_time.sleep.side_effect = sleeps.append
    monkeypatch.setattr(geo, "time", fake_time)

    client = _client(session, min_interval_sec=1.0)
    client._last_request_ts = 0.0
    client.search("a", language="es", country_codes="ve")
    client.search("b", language="es", country_codes="ve")

    assert sleeps == [pytest.approx(0.8)]


def test_fallback_user_agent(monkeypatch):
    monkeypatch.setattr(geo.settings, "GEOCODER_USER_AGENT", None)
    client = NominatimClient(session=MagicMock(), min_interval_sec=0)
    assert client.headers["User-Agent"] == "AquaNova/1.0"


def test_redact_email():
    assert _redact_email("App/1.0 (me@example.com)") == "App/1.0 <redacted>"
    assert _redact_email("App/1.0") == "App/1.0"
