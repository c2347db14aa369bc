"""
Shared fixtures: settings, a recording mock upstream, and an app client.
"""
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app

UPSTREAM_URL = "https://llm.test/v1/completions"


def make_settings(**overrides) -> Settings:
    values = {
        "ENVIRONMENT": "test",
        "GEMINI_API_URL": UPSTREAM_URL,
        "GEMINI_API_KEY": "test-key",
        "GEMINI_MODEL": "gemini-test",
        "SENTRY_DSN": None,
    }
    values.update(overrides)
    return Settings(**values)


class MockUpstream:
    """Scripted completion endpoint that records every request"""

    def __init__(self):
        self.requests = []
        self._respond = lambda request: httpx.Response(200, json={"text": "{}"})

    def reply_json(self, payload, status_code: int = 200):
        self._respond = lambda request: httpx.Response(status_code, json=payload)

    def reply_text(self, text: str, status_code: int = 200):
        self._respond = lambda request: httpx.Response(status_code, text=text)

    def raise_error(self, error_type):
        def respond(request):
            raise error_type("upstream went away", request=request)
        self._respond = respond

    @property
    def last_body(self):
        return json.loads(self.requests[-1].content)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._respond(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def upstream():
    return MockUpstream()


@pytest.fixture
def client(settings, upstream):
    app = create_app(settings=settings, transport=upstream.transport)
    return TestClient(app)
