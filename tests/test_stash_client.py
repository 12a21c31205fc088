"""Tests for :mod:`stash_watch.core.stash_client`."""
from __future__ import annotations

import json

import httpx
import pytest

from stash_watch.core.stash_client import ScanOptions, StashClient, StashConfig
from stash_watch.utils.errors import NotifyError

ENDPOINT = "http://stash.local:9999/graphql"


@pytest.fixture()
def requests_seen():
    return []


def make_client(requests_seen, status_code=200, **config) -> StashClient:
    def handler(request: httpx.Request) -> httpx.Response:
        requests_seen.append(request)
        return httpx.Response(status_code, json={"data": {"metadataScan": "1"}})

    config.setdefault("endpoint", ENDPOINT)
    return StashClient(StashConfig(**config), transport=httpx.MockTransport(handler))


def test_scan_mutation_lists_every_flag():
    query = ScanOptions(rescan=True, scanGeneratePhashes=True).to_graphql()

    assert query.startswith("mutation { metadataScan (input: {")
    assert "rescan: true" in query
    assert "scanGeneratePhashes: true" in query
    assert "scanGenerateCovers: false" in query
    assert query.count("true") + query.count("false") == 8


def test_trigger_scan_posts_graphql_body(requests_seen):
    client = make_client(requests_seen, scan=ScanOptions(scanGenerateThumbnails=True))

    assert client.trigger_scan() is True

    (request,) = requests_seen
    assert request.method == "POST"
    assert str(request.url) == ENDPOINT
    assert request.headers["Content-Type"] == "application/json"
    assert "ApiKey" not in request.headers
    body = json.loads(request.content)
    assert "metadataScan" in body["query"]
    assert "scanGenerateThumbnails: true" in body["query"]


def test_api_key_header_only_with_auth(requests_seen):
    client = make_client(requests_seen, do_auth=True, api_key="secret")

    client.trigger_scan()

    assert requests_seen[0].headers["ApiKey"] == "secret"


def test_auth_without_key_sends_nothing(requests_seen, monkeypatch):
    monkeypatch.delenv("STASH_API_KEY", raising=False)
    client = make_client(requests_seen, do_auth=True)

    assert client.trigger_scan() is False
    assert requests_seen == []


def test_error_status_is_a_soft_failure(requests_seen):
    client = make_client(requests_seen, status_code=500)

    assert client.trigger_scan() is False
    with pytest.raises(NotifyError, match="500"):
        client.send_scan_request()


def test_transport_error_is_a_soft_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = StashClient(StashConfig(endpoint=ENDPOINT), transport=httpx.MockTransport(handler))

    assert client.trigger_scan() is False


def test_missing_endpoint_is_reported():
    with StashClient(StashConfig()) as client:
        with pytest.raises(NotifyError, match="endpoint"):
            client.send_scan_request()
