"""Gemeinsame Fixtures: N8nClient gegen httpx.MockTransport."""
import json
import sys
from pathlib import Path

import httpx
import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from n8nClient.core.n8n_client import N8nClient  # noqa: E402

BASE_URL = "http://n8n.test:5678"
API_KEY = "test-key"


class Recorder:
    """Merkt sich alle Requests und antwortet mit einer festen Response."""

    def __init__(self, status_code=200, json_body=None, text=None, headers=None):
        self.requests = []
        self.status_code = status_code
        self.json_body = json_body
        self.text = text
        self.headers = headers

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.text is not None:
            return httpx.Response(self.status_code, text=self.text, headers=self.headers)
        return httpx.Response(self.status_code, json=self.json_body, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_body(self):
        return json.loads(self.last.content) if self.last.content else None


@pytest.fixture
def recorder():
    return Recorder(json_body={"data": []})


@pytest.fixture
def make_client():
    def _make(rec, base_url=BASE_URL):
        return N8nClient(base_url, API_KEY, transport=httpx.MockTransport(rec))
    return _make


@pytest.fixture
def client(recorder, make_client):
    return make_client(recorder)


@pytest.fixture
def recorder_cls():
    return Recorder
