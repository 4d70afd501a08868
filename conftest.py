"""Shared fixtures for the Ciku test suite."""
import httpx
import pytest
from fastapi.testclient import TestClient

import auth
from backend import create_app
from llm import OllamaClient


@pytest.fixture(autouse=True)
def reset_rate_limits():
    auth.rate_limit_reset()
    yield
    auth.rate_limit_reset()


@pytest.fixture()
def make_llm():
    """Factory for an OllamaClient backed by a canned reply instead of a server.

    `reply` may be a string (the chat content), or an exception instance to raise.
    `raw_body` sends that text verbatim and `payload` sends that JSON instead of a chat message.
    """
    def _make(reply="", status_code=200, tags_status=200, raw_body=None, payload=None):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/api/tags":
                return httpx.Response(tags_status, json={"models": []})
            calls.append(request)
            if isinstance(reply, Exception):
                raise reply
            if raw_body is not None:
                return httpx.Response(status_code, text=raw_body)
            if payload is not None:
                return httpx.Response(status_code, json=payload)
            return httpx.Response(status_code, json={"message": {"role": "assistant", "content": reply}})

        client = OllamaClient(base_url="http://ollama.test", model="test-model",
                              transport=httpx.MockTransport(handler))
        client.calls = calls
        return client
    return _make


@pytest.fixture()
def headers():
    return {"Content-Type": "application/json", "X-App-Password": auth.APP_PASSWORD}


@pytest.fixture()
def client(make_llm):
    """TestClient running the full app in mock-generation mode."""
    app = create_app(llm=make_llm(), use_mock=True)
    with TestClient(app) as test_client:
        yield test_client
