import pytest
import requests

from core.errors import TransportError
from stream.rest_client import RunesClient


class _Response:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code
        self.text = str(payload)

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


def _client() -> RunesClient:
    return RunesClient(base_url="http://api.test/", api_key="secret")


def test_get_wallets(monkeypatch):
    client = _client()
    seen = {}

    def fake_get(url, timeout):
        seen["url"] = url
        return _Response([{"ticker": "DOG", "available": "5", "locked": "0"}])

    monkeypatch.setattr(client._session, "get", fake_get)
    wallets = client.get_wallets()

    assert wallets[0]["ticker"] == "DOG"
    assert seen["url"] == "http://api.test/wallets"
    assert client._session.headers["Authorization"] == "Bearer secret"


def test_server_error_message_is_surfaced(monkeypatch):
    client = _client()
    monkeypatch.setattr(
        client._session,
        "get",
        lambda *args, **kwargs: _Response({"error": "Missing read scope"}, 403),
    )
    with pytest.raises(TransportError) as excinfo:
        client.get_wallets()
    assert str(excinfo.value) == "Missing read scope"
    assert excinfo.value.status_code == 403


def test_error_without_body_uses_default(monkeypatch):
    client = _client()
    monkeypatch.setattr(
        client._session,
        "get",
        lambda *args, **kwargs: _Response(ValueError("no json"), 502),
    )
    with pytest.raises(TransportError, match="Request to /wallets failed"):
        client.get_wallets()


def test_connection_failure(monkeypatch):
    client = _client()

    def fake_get(*args, **kwargs):
        raise requests.ConnectionError("refused")

    monkeypatch.setattr(client._session, "get", fake_get)
    with pytest.raises(TransportError):
        client.get_wallets()
