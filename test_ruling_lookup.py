#!/usr/bin/env python3
"""
Tests for the Scryfall ruling lookup and its autocomplete fallback
"""
import pytest

import ruling_lookup
from config import settings
from conftest import API_BASE, MALFORMED, FakeResponse
from models import LookupKind, NetworkError, NotFoundError, ParseError
from ruling_lookup import ScryfallClient

NAMED = f"{API_BASE}/cards/named"
AUTOCOMPLETE = f"{API_BASE}/cards/autocomplete"
BOLT_RULINGS = f"{API_BASE}/cards/e3285e6b/rulings"

BOLT = {"object": "card", "name": "Lightning Bolt", "rulings_uri": BOLT_RULINGS}
BOLT_RULINGS_PAYLOAD = {
    "object": "list",
    "data": [
        {"source": "wotc", "published_at": "2004-10-04", "comment": "It can target any target."},
        {"source": "wotc", "published_at": "2021-04-16", "comment": "Deals 3 damage."},
    ],
}
SUGGESTIONS = {
    "object": "catalog",
    "data": ["Lightning Bolt", "Lightning Blast", "Lightning Axe", "Lightning Helix"],
}


def test_lookup_returns_rulings_in_order(make_lookup, fake_session):
    lookup = make_lookup({
        NAMED: FakeResponse(200, BOLT),
        BOLT_RULINGS: FakeResponse(200, BOLT_RULINGS_PAYLOAD),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.kind == LookupKind.RULINGS
    assert result.card_name == "Lightning Bolt"
    assert [r.published_at for r in result.rulings] == ["2004-10-04", "2021-04-16"]
    assert result.rulings[1].comment == "Deals 3 damage."
    assert result.suggestions == ()
    assert fake_session.calls[0] == (NAMED, {"fuzzy": "Lightning Bolt"})
    assert AUTOCOMPLETE not in fake_session.urls()


def test_misspelled_name_falls_back_to_three_suggestions(make_lookup, fake_session):
    lookup = make_lookup({
        NAMED: FakeResponse(404, {"object": "error", "code": "not_found"}),
        AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS),
    })

    result = lookup.lookup("Lihgtning Blot")

    assert result.kind == LookupKind.SUGGESTIONS
    assert result.rulings == ()
    assert result.suggestions == ("Lightning Bolt", "Lightning Blast", "Lightning Axe")
    assert result.primary_failure == NotFoundError.kind
    assert fake_session.calls[-1] == (AUTOCOMPLETE, {"q": "Lihgtning Blot"})


def test_card_without_rulings_uri_falls_back(make_lookup):
    lookup = make_lookup({
        NAMED: FakeResponse(200, {"object": "card", "name": "Lightning Bolt"}),
        AUTOCOMPLETE: FakeResponse(200, {"data": ["Lightning Bolt"]}),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.kind == LookupKind.SUGGESTIONS
    assert result.suggestions == ("Lightning Bolt",)
    assert result.primary_failure == "not_found"


def test_network_failure_is_recorded_and_falls_back(make_lookup, network_down):
    lookup = make_lookup({
        NAMED: network_down,
        AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.kind == LookupKind.SUGGESTIONS
    assert result.primary_failure == "network"


def test_malformed_json_is_a_parse_failure(make_lookup):
    lookup = make_lookup({
        NAMED: FakeResponse(200, MALFORMED),
        AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.primary_failure == ParseError.kind
    assert len(result.suggestions) == 3


def test_failed_rulings_fetch_falls_back(make_lookup):
    lookup = make_lookup({
        NAMED: FakeResponse(200, BOLT),
        BOLT_RULINGS: FakeResponse(500, {"object": "error"}),
        AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.kind == LookupKind.SUGGESTIONS
    assert result.primary_failure == "network"


def test_bad_ruling_entry_falls_back(make_lookup):
    lookup = make_lookup({
        NAMED: FakeResponse(200, BOLT),
        BOLT_RULINGS: FakeResponse(200, {"data": ["not a ruling"]}),
        AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS),
    })

    assert lookup.lookup("Lightning Bolt").primary_failure == "parse"


def test_fallback_failure_returns_nothing(make_lookup, network_down):
    lookup = make_lookup({
        NAMED: FakeResponse(404, {"object": "error"}),
        AUTOCOMPLETE: network_down,
    })

    result = lookup.lookup("Qwzxv")

    assert result.kind == LookupKind.NOTHING
    assert result.is_empty
    assert result.primary_failure == "not_found"
    assert result.fallback_failure == "network"


def test_empty_autocomplete_returns_nothing(make_lookup):
    lookup = make_lookup({
        NAMED: FakeResponse(404, {"object": "error"}),
        AUTOCOMPLETE: FakeResponse(200, {"object": "catalog", "data": []}),
    })

    result = lookup.lookup("Qwzxv")

    assert result.kind == LookupKind.NOTHING
    assert result.fallback_failure is None


@pytest.mark.parametrize("name", ["", "   ", None])
def test_blank_name_skips_network(make_lookup, fake_session, name):
    result = make_lookup().lookup(name)

    assert result.kind == LookupKind.NOTHING
    assert fake_session.calls == []


def test_rate_limited_request_is_retried(make_lookup, fake_session, monkeypatch):
    sleeps = []
    monkeypatch.setattr(ruling_lookup.time, "sleep", sleeps.append)
    lookup = make_lookup({
        NAMED: [FakeResponse(429, {}, headers={"Retry-After": "2"}), FakeResponse(200, BOLT)],
        BOLT_RULINGS: FakeResponse(200, BOLT_RULINGS_PAYLOAD),
    })

    result = lookup.lookup("Lightning Bolt")

    assert result.kind == LookupKind.RULINGS
    assert 2.0 in sleeps
    assert fake_session.urls().count(NAMED) == 2


def test_named_card_results_are_cached(make_lookup, fake_session):
    lookup = make_lookup({
        NAMED: FakeResponse(200, BOLT),
        BOLT_RULINGS: FakeResponse(200, BOLT_RULINGS_PAYLOAD),
    })

    lookup.lookup("Lightning Bolt")
    lookup.lookup("lightning bolt")

    assert fake_session.urls().count(NAMED) == 1
    assert fake_session.urls().count(BOLT_RULINGS) == 2


def test_suggestion_cap_is_configurable(make_lookup):
    lookup = make_lookup({AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS)}, max_suggestions=1)

    assert lookup.lookup("Lightnin").suggestions == ("Lightning Bolt",)


@pytest.mark.parametrize("routes", [
    {NAMED: FakeResponse(200, BOLT), BOLT_RULINGS: FakeResponse(200, BOLT_RULINGS_PAYLOAD),
     AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS)},
    {AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS)},
    {NAMED: FakeResponse(200, MALFORMED), AUTOCOMPLETE: FakeResponse(200, MALFORMED)},
])
def test_never_both_rulings_and_suggestions(make_lookup, routes):
    result = make_lookup(routes).lookup("Lightning Bolt")

    assert not (result.has_rulings and result.has_suggestions)


def test_lookup_rulings_uses_default_client(fake_session, monkeypatch):
    fake_session.routes.update({
        NAMED: FakeResponse(200, BOLT),
        BOLT_RULINGS: FakeResponse(200, BOLT_RULINGS_PAYLOAD),
    })
    monkeypatch.setattr(ruling_lookup.requests, "Session", lambda: fake_session)

    result = ruling_lookup.lookup_rulings("Lightning Bolt")

    assert len(result.rulings) == 2
    assert fake_session.headers["Accept"] == "application/json"


def test_http_date_retry_after_on_fallback_returns_nothing(make_lookup, fake_session, monkeypatch):
    sleeps = []
    monkeypatch.setattr(ruling_lookup.time, "sleep", sleeps.append)
    lookup = make_lookup({
        NAMED: FakeResponse(404, {"object": "error"}),
        AUTOCOMPLETE: [FakeResponse(429, {}, headers={"Retry-After": "Wed, 21 Oct 2015 07:28:00 GMT"})],
    })

    result = lookup.lookup("Lihgtning Blot")

    assert result.kind == LookupKind.NOTHING
    assert result.fallback_failure == NetworkError.kind
    # a date in the past means retry immediately
    assert sleeps == [0.0] * settings.API_MAX_RETRIES


@pytest.mark.parametrize("header, expected", [
    ({"Retry-After": "3"}, 3.0),
    ({"Retry-After": "soon"}, ruling_lookup.DEFAULT_RETRY_AFTER),
    ({}, ruling_lookup.DEFAULT_RETRY_AFTER),
])
def test_retry_after_header_parsing(fake_session, header, expected):
    client = ScryfallClient(api_base=API_BASE, rate_limit_delay=0, session=fake_session)

    assert client._retry_after(FakeResponse(429, {}, headers=header)) == expected


def test_rate_limit_exhausted_is_network_failure(make_lookup, fake_session, monkeypatch):
    monkeypatch.setattr(ruling_lookup.time, "sleep", lambda seconds: None)
    lookup = make_lookup({
        NAMED: FakeResponse(404, {"object": "error"}),
        AUTOCOMPLETE: [FakeResponse(429, {}, headers={"Retry-After": "1"})],
    })

    result = lookup.lookup("Lihgtning Blot")

    assert result.kind == LookupKind.NOTHING
    assert result.fallback_failure == "network"
    assert fake_session.urls().count(AUTOCOMPLETE) == settings.API_MAX_RETRIES + 1


def test_unexpected_autocomplete_error_returns_nothing(make_lookup, monkeypatch):
    lookup = make_lookup({NAMED: FakeResponse(404, {"object": "error"})})

    def broken(query):
        raise RuntimeError("unexpected payload")

    monkeypatch.setattr(lookup.client, "autocomplete", broken)

    result = lookup.lookup("Qwzxv")

    assert result.kind == LookupKind.NOTHING
    assert result.fallback_failure == ParseError.kind


def test_named_card_cache_evicts_oldest(fake_session):
    fake_session.routes[NAMED] = FakeResponse(200, BOLT)
    client = ScryfallClient(api_base=API_BASE, rate_limit_delay=0, session=fake_session)
    client.cache_max_size = 2

    client.named_card("Shock")
    client.named_card("Opt")
    client.named_card("Duress")

    assert list(client.api_cache) == ["opt", "duress"]
    client.named_card("Shock")
    assert fake_session.urls().count(NAMED) == 4


def test_zero_suggestion_cap_is_respected(make_lookup):
    lookup = make_lookup({AUTOCOMPLETE: FakeResponse(200, SUGGESTIONS)}, max_suggestions=0)

    result = lookup.lookup("Lightnin")

    assert lookup.max_suggestions == 0
    assert result.kind == LookupKind.NOTHING
    assert result.suggestions == ()
