import sys
from pathlib import Path

import pytest
import requests

sys.path.insert(0, str(Path(__file__).resolve().parent))

from ruling_lookup import RulingLookup, ScryfallClient

API_BASE = "https://api.scryfall.com"

MALFORMED = object()


class FakeResponse:
    def __init__(self, status_code=200, payload=None, headers=None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}
        self.text = str(payload)

    def json(self):
        if self._payload is MALFORMED:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """Routes GETs by URL; a route may be a response, a list of responses, or an exception"""

    def __init__(self, routes=None):
        self.headers = {}
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if url not in self.routes:
            return FakeResponse(404, {"object": "error", "code": "not_found"})

        route = self.routes[url]
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, Exception):
            raise route
        return route

    def urls(self):
        return [url for url, _ in self.calls]


@pytest.fixture
def fake_session():
    return FakeSession()


@pytest.fixture
def make_lookup(fake_session):
    def _make(routes=None, max_suggestions=3):
        fake_session.routes.update(routes or {})
        client = ScryfallClient(api_base=API_BASE, rate_limit_delay=0, session=fake_session)
        return RulingLookup(client=client, max_suggestions=max_suggestions)
    return _make


@pytest.fixture
def network_down():
    return requests.exceptions.ConnectionError("Connection refused")
