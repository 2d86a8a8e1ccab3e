from __future__ import annotations

import httpx
from fastapi.testclient import TestClient

from feedproxy.main import create_app
from feedproxy.services.upstream import UpstreamFetcher, get_upstream_fetcher

_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"><channel>
  <title>Proxy feed</title>
  <link>https://news.example.com/</link>
  <item><title>A</title><link>https://news.example.com/a</link><pubDate>Thu, 05 Feb 2026 08:00:00 +0000</pubDate><description>Alpha</description></item>
  <item><title>B</title><link>https://news.example.com/b</link></item>
</channel></rss>"""

_ATOM = """<feed xmlns="http://www.w3.org/2005/Atom">
  <title>Atom proxy</title>
  <link href="https://atom.example.com/"/>
  <entry><title>E</title><link rel="self" href="https://atom.example.com/e.xml"/><link href="https://atom.example.com/e"/><updated>2026-02-05T08:00:00Z</updated></entry>
</feed>"""


def _build_transport(calls: list[httpx.Request]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        path = request.url.path
        if path == "/rss.xml":
            return httpx.Response(200, text=_RSS, headers={"Content-Type": "application/rss+xml"})
        if path == "/atom.xml":
            return httpx.Response(200, text=_ATOM, headers={"Content-Type": "application/atom+xml"})
        if path == "/data.json":
            return httpx.Response(200, text='[{"id": 1, "tags": null}]', headers={"Content-Type": "text/plain"})
        if path == "/broken.json":
            return httpx.Response(200, text='{"id": 1,', headers={"Content-Type": "application/json"})
        if path == "/page.html":
            return httpx.Response(200, text="<html><body>hi</body></html>", headers={"Content-Type": "text/html"})
        if path == "/missing":
            return httpx.Response(404, text="not found")
        raise httpx.ConnectError("no route to host", request=request)

    return httpx.MockTransport(handler)


def _client(calls: list[httpx.Request] | None = None) -> TestClient:
    fetcher = UpstreamFetcher(transport=_build_transport(calls if calls is not None else []))
    app = create_app()
    app.dependency_overrides[get_upstream_fetcher] = lambda: fetcher
    return TestClient(app)


def test_health():
    resp = _client().get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True}


def test_rss_requires_url_parameter():
    client = _client()
    for path in ("/rss", "/rss?url="):
        resp = client.get(path)
        assert resp.status_code == 400, path
        assert resp.json() == {"error": "Missing ?url="}


def test_rss_rejects_blocked_targets_without_fetching():
    calls: list[httpx.Request] = []
    client = _client(calls)
    cases = {
        "ftp://example.com/feed": "Only http/https allowed",
        "http://localhost/feed": "Blocked host",
        "http://10.0.0.5/feed": "Private IP blocked",
        "nonsense": "Invalid URL",
    }
    for target, reason in cases.items():
        resp = client.get("/rss", params={"url": target})
        assert resp.status_code == 400, target
        assert resp.json() == {"error": reason}
    assert calls == []


def test_rss_normalizes_rss_feed():
    calls: list[httpx.Request] = []
    url = "https://news.example.com/rss.xml"
    resp = _client(calls).get("/rss", params={"url": url})

    assert resp.status_code == 200, resp.text
    assert resp.headers["cache-control"] == "public, max-age=120"
    assert resp.json() == {
        "source": url,
        "type": "rss",
        "feedTitle": "Proxy feed",
        "feedLink": "https://news.example.com/",
        "items": [
            {
                "title": "A",
                "link": "https://news.example.com/a",
                "pubDate": "Thu, 05 Feb 2026 08:00:00 +0000",
                "summary": "Alpha",
            },
            {"title": "B", "link": "https://news.example.com/b"},
        ],
    }
    assert calls[0].headers["Accept"].startswith("application/rss+xml")


def test_rss_normalizes_atom_feed():
    resp = _client().get("/rss", params={"url": "https://atom.example.com/atom.xml"})

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert body["type"] == "rss"
    assert body["feedLink"] == "https://atom.example.com/"
    assert body["items"] == [
        {"title": "E", "link": "https://atom.example.com/e", "pubDate": "2026-02-05T08:00:00Z"}
    ]


def test_rss_passes_json_through_despite_content_type():
    url = "https://api.example.com/data.json"
    resp = _client().get("/rss", params={"url": url})

    assert resp.status_code == 200, resp.text
    assert resp.headers["cache-control"] == "public, max-age=120"
    assert resp.json() == {"source": url, "type": "json", "data": [{"id": 1, "tags": None}]}


def test_rss_reports_unparseable_bodies():
    client = _client()
    for target, details in (
        ("https://api.example.com/broken.json", "Failed to parse XML (not valid RSS/Atom?)"),
        ("https://www.example.com/page.html", "Not RSS or Atom"),
    ):
        resp = client.get("/rss", params={"url": target})
        assert resp.status_code == 400, target
        assert "cache-control" not in resp.headers
        assert resp.json() == {
            "error": "Could not parse feed",
            "hint": "Make sure the URL is RSS/Atom XML or JSON.",
            "details": details,
        }


def test_rss_maps_upstream_failures_to_502():
    client = _client()

    resp = client.get("/rss", params={"url": "https://news.example.com/missing"})
    assert resp.status_code == 502
    assert resp.json() == {"error": "Upstream error 404"}

    resp = client.get("/rss", params={"url": "https://unreachable.example.com/feed"})
    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == "Upstream fetch failed"
    assert "no route to host" in body["details"]


def test_rss_serves_repeat_requests_from_upstream_cache():
    calls: list[httpx.Request] = []
    client = _client(calls)
    url = "https://news.example.com/rss.xml"

    first = client.get("/rss", params={"url": url})
    second = client.get("/rss", params={"url": url})

    assert first.json() == second.json()
    assert len(calls) == 1


def test_rss_rejects_url_with_malformed_port():
    calls: list[httpx.Request] = []
    resp = _client(calls).get("/rss", params={"url": "http://example.com:abc/"})

    assert resp.status_code == 400
    assert resp.json() == {"error": "Invalid URL"}
    assert calls == []
