import logging
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from urlmapper.core.errors import StoreError
from urlmapper.core.records import MappingRecord


def create(client: TestClient, long_url: str) -> str:
    resp = client.post("/", json={"long_url": long_url})
    assert resp.status_code == 201
    return resp.json()["short_url"]


def test_create_mapping(client):
    resp = client.post("/", json={"long_url": "https://example.com"})

    assert resp.status_code == 201
    assert resp.headers["content-type"].startswith("application/json")
    body = resp.json()
    assert body["long_url"] == "https://example.com"
    assert len(body["short_url"]) == 8
    assert body["access_count"] == 0
    assert "created_at" in body


def test_create_then_resolve_redirects_to_long_url(client):
    code = create(client, "https://example.com")

    resp = client.get(f"/{code}", follow_redirects=False)

    assert resp.status_code == 301
    assert resp.headers["location"] == "https://example.com"
    assert resp.content == b""


@pytest.mark.parametrize(
    "long_url",
    [
        "not really a url",
        "https://example.com/search?q=a|b",
        "https://example.com/a b",
        "https://example.com/{x}",
        'https://example.com/"quoted"<tag>',
        "https://example.com/already%20encoded",
    ],
)
def test_redirect_location_is_the_stored_long_url(client, long_url):
    code = create(client, long_url)

    resp = client.get(f"/{code}", follow_redirects=False)

    assert resp.status_code == 301
    assert resp.headers["location"] == long_url
    assert resp.content == b""


@pytest.mark.parametrize(
    "long_url, location",
    [
        ("https://example.com/a\r\nSet-Cookie: x=1", "https://example.com/a%0D%0ASet-Cookie: x=1"),
        ("https://example.com/日本", "https://example.com/%E6%97%A5%E6%9C%AC"),
    ],
)
def test_redirect_escapes_only_what_a_header_cannot_carry(client, long_url, location):
    code = create(client, long_url)

    resp = client.get(f"/{code}", follow_redirects=False)

    assert resp.status_code == 301
    assert resp.headers["location"] == location
    assert "set-cookie" not in resp.headers


def test_resolve_unknown_code_returns_404(client, spy_store):
    create(client, "https://example.com")

    resp = client.get("/00000000", follow_redirects=False)

    assert resp.status_code == 404
    spy_store.increment.assert_not_called()


def test_repeated_resolves_count_every_hit(client, store):
    code = create(client, "https://example.com/a")

    for _ in range(3):
        resp = client.get(f"/{code}", follow_redirects=False)
        assert resp.status_code == 301
        assert resp.headers["location"] == "https://example.com/a"

    assert store.get(code).access_count == 3


def test_each_create_gets_its_own_code(client):
    codes = {create(client, f"https://example.com/{i}") for i in range(20)}
    assert len(codes) == 20


@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"not json", "headers": {"content-type": "application/json"}},
        {"json": {}},
        {"json": {"url": "https://example.com"}},
        {"json": {"long_url": 42}},
        {"json": {"long_url": ""}},
        {"json": ["https://example.com"]},
    ],
)
def test_create_rejects_bad_body_without_writing(client, spy_store, kwargs):
    resp = client.post("/", **kwargs)

    assert resp.status_code == 400
    spy_store.put_if_absent.assert_not_called()


@pytest.mark.parametrize(
    "method, path",
    [
        ("PUT", "/abc12345"),
        ("DELETE", "/abc12345"),
        ("PATCH", "/abc12345"),
        ("POST", "/abc12345"),
        ("PUT", "/"),
        ("DELETE", "/"),
        ("PUT", "/a/b"),
        ("DELETE", "/a/b/c"),
        ("OPTIONS", "/a/b"),
        ("PATCH", "/_health"),
    ],
)
def test_unsupported_method_returns_405_without_store_access(client, spy_store, method, path):
    resp = client.request(method, path)

    assert resp.status_code == 405
    assert resp.headers["content-type"].startswith("text/plain")
    assert resp.text == "Method not allowed"
    spy_store.get.assert_not_called()
    spy_store.put_if_absent.assert_not_called()
    spy_store.increment.assert_not_called()


def test_counter_failure_does_not_change_redirect(client, spy_store, caplog):
    code = create(client, "https://example.com")
    spy_store.increment.side_effect = StoreError("counter update failed")

    with caplog.at_level(logging.WARNING, logger="urlmapper"):
        resp = client.get(f"/{code}", follow_redirects=False)

    assert resp.status_code == 301
    assert resp.headers["location"] == "https://example.com"
    assert any(
        "Failed to update access count" in r.getMessage() and code in r.getMessage()
        for r in caplog.records
    )


def test_health_reports_store_state(client, spy_store):
    resp = client.get("/_health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "store": True}

    spy_store.ping.return_value = False
    resp = client.get("/_health")
    assert resp.status_code == 503
    assert resp.json() == {"status": "degraded", "store": False}


def test_code_spelling_a_word_still_resolves(client, store):
    store.put_if_absent(
        MappingRecord(
            short_url="health",
            long_url="https://example.com/health",
            created_at=datetime.now(timezone.utc),
        )
    )

    resp = client.get("/health", follow_redirects=False)

    assert resp.status_code == 301
    assert resp.headers["location"] == "https://example.com/health"


def test_example_round_trip(client):
    resp = client.post("/", json={"long_url": "https://example.com"})
    assert resp.status_code == 201
    assert '"long_url":"https://example.com"' in resp.text
    code = resp.json()["short_url"]
    assert len(code) == 8

    resp = client.get(f"/{code}", follow_redirects=False)
    assert resp.status_code == 301
    assert resp.headers["location"] == "https://example.com"

    resp = client.get("/00000000", follow_redirects=False)
    assert resp.status_code == 404
