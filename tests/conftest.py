import json

import httpx
import pytest

from minimall_server.auth import AuthManager
from minimall_server.config import Settings
from minimall_server.minimall_client import MinimallClient

API_URL = "https://minimall.test"


class FakeBackend:
    """
    Routes requests to canned answers and records what was sent.

    A route answer is a dict (200 JSON), a `(status, body)` tuple, or a
    callable taking the request and returning an httpx.Response.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, answer):
        self.routes[(method, path)] = answer

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self.routes.get((request.method, request.url.path))
        if answer is None:
            return httpx.Response(404, json={"detail": f"No route for {request.method} {request.url.path}"})
        if callable(answer):
            return answer(request)
        if isinstance(answer, tuple):
            status, body = answer
            return httpx.Response(status, json=body)
        return httpx.Response(200, json=answer)

    def sent(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]

    @staticmethod
    def body(request):
        return json.loads(request.content)


@pytest.fixture()
def session_file(tmp_path):
    return str(tmp_path / "session.json")


@pytest.fixture()
def backend():
    return FakeBackend()


@pytest.fixture()
def redirects():
    return []


@pytest.fixture()
def client(session_file, backend, redirects):
    settings = Settings(api_url=API_URL, session_file=session_file)
    minimall_client = MinimallClient.from_settings(
        settings, on_unauthenticated=redirects.append, transport=httpx.MockTransport(backend)
    )
    yield minimall_client
    minimall_client.close()


@pytest.fixture()
def signed_in(client):
    client.auth_manager.save_token("tok-123", {"id": 7, "email": "ana@example.com", "full_name": "Ana Cruz"})
    return client


@pytest.fixture()
def auth_manager(session_file):
    return AuthManager(session_file)
