import json
from pathlib import Path
from urllib.parse import parse_qs, urlsplit

import pytest
import requests
from requests.structures import CaseInsensitiveDict

pytest_plugins = ["pytester"]

FIXTURES = Path(__file__).parent / "fixtures"


def make_response(status: int, body=None, headers: dict | None = None) -> requests.Response:
    resp = requests.Response()
    resp.status_code = status
    resp.headers = CaseInsensitiveDict(headers or {})
    resp.encoding = "utf-8"
    if body is None:
        resp._content = b""
    elif isinstance(body, (dict, list)):
        resp._content = json.dumps(body).encode("utf-8")
        resp.headers.setdefault("Content-Type", "application/json")
    else:
        resp._content = str(body).encode("utf-8")
    return resp


class FakeSession:
    """Stands in for requests.Session: prepares each request and routes it to a handler."""

    def __init__(self, routes: dict):
        self.routes = routes
        self.sent: list[requests.PreparedRequest] = []

    def request(self, method, url, headers=None, params=None, json=None, data=None, auth=None, timeout=None):
        prepared = requests.Request(
            method, url, headers=headers, params=params, json=json, data=data, auth=auth,
        ).prepare()
        self.sent.append(prepared)
        parts = urlsplit(prepared.url)
        handler = self.routes.get((method, parts.path))
        if handler is None:
            return make_response(404, "Not found")
        return handler(prepared, parse_qs(parts.query))

    def close(self):
        pass


@pytest.fixture
def fixtures_dir() -> Path:
    return FIXTURES


@pytest.fixture
def fake_session():
    return FakeSession
