"""Shared fixtures: config factory and an in-memory Google Reader server."""

import os
from urllib.parse import parse_qs

import httpx
import pytest

from greader_sync.client import GreaderClient
from greader_sync.config import Config
from greader_sync.stream_ids import LONG_ID_PREFIX

LOGIN_BODY = "SID=sid-1\nLSID=null\nAuth=auth-1\n"


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Remove all GREADER/MCP env vars before each test."""
    for key in list(os.environ):
        if key.startswith(("GREADER_", "MCP_SERVER_")):
            monkeypatch.delenv(key, raising=False)


def make_config(**overrides) -> Config:
    values = {
        "GREADER_URL": "https://rss.example.com",
        "GREADER_USERNAME": "alice",
        "GREADER_PASSWORD": "s3cret",
        "GREADER_NEWER_THAN_DAYS": 0,
    }
    values.update(overrides)
    return Config(**values)


def long_id(number: int) -> str:
    return f"{LONG_ID_PREFIX}{number:016x}"


def make_item(number: int, stream: str = "feed/1", read: bool = False, starred: bool = False) -> dict:
    categories = ["user/-/state/com.google/reading-list"]
    if read:
        categories.append("user/-/state/com.google/read")
    if starred:
        categories.append("user/-/state/com.google/starred")
    return {
        "id": long_id(number),
        "title": f"Item {number}",
        "published": 1700000000 + number,
        "alternate": [{"href": f"https://example.com/{number}"}],
        "summary": {"content": f"Body {number}"},
        "origin": {"streamId": stream, "title": stream},
        "categories": categories,
    }


class FakeReader:
    """Google Reader server for ``httpx.MockTransport``.

    ``ids`` maps ``(stream, unread_only)`` to the short ids the server lists;
    ``items`` maps long ids to item JSON served by ItemContents.
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.ids: dict[tuple[str, bool], list[str]] = {}
        self.items: dict[str, dict] = {}
        self.streams: dict[str, list[dict]] = {}
        self.tags: dict = {"tags": []}
        self.subscriptions: dict = {"subscriptions": []}
        self.login_body = LOGIN_BODY
        self.failing: set[str] = set()
        self.status_code = 500

    def add_items(self, stream: str, numbers: list[int], unread: list[int] = (), starred: list[int] = ()):
        for number in numbers:
            self.items[long_id(number)] = make_item(
                number, stream, read=number not in unread, starred=number in starred
            )

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def count(self, suffix: str) -> int:
        return sum(1 for path in self.paths() if path.endswith(suffix))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        params = request.url.params

        for suffix in self.failing:
            if path.endswith(suffix):
                return httpx.Response(self.status_code)

        if path.endswith("/accounts/ClientLogin"):
            return httpx.Response(200, text=self.login_body)
        if path.endswith("/reader/api/0/token"):
            return httpx.Response(200, text="edit-token")
        if path.endswith("/stream/items/ids"):
            key = (params["s"], "xt" in params)
            refs = [{"id": item_id} for item_id in self.ids.get(key, [])]
            return httpx.Response(200, json={"itemRefs": refs, "continuation": ""})
        if path.endswith("/stream/items/contents"):
            ids = parse_qs(request.content.decode()).get("i", [])
            items = [self.items[item_id] for item_id in ids if item_id in self.items]
            return httpx.Response(200, json={"items": items, "continuation": ""})
        if "/stream/contents/" in path:
            stream = path.split("/stream/contents/", 1)[1]
            return httpx.Response(200, json={"items": self.streams.get(stream, []), "continuation": ""})
        if path.endswith("/tag/list"):
            return httpx.Response(200, json=self.tags)
        if path.endswith("/subscription/list"):
            return httpx.Response(200, json=self.subscriptions)
        if path.endswith("/user-info"):
            return httpx.Response(200, json={"userId": "42", "userName": "alice"})
        if path.endswith("/edit-tag"):
            return httpx.Response(200, text="OK")
        return httpx.Response(404)


def make_client(config: Config, handler, **kwargs) -> GreaderClient:
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GreaderClient(config, http=http, **kwargs)


@pytest.fixture
def config():
    return make_config()


@pytest.fixture
def reader():
    return FakeReader()


@pytest.fixture
def client(config, reader):
    return make_client(config, reader)
