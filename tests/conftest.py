import time

import pytest
from fastapi.testclient import TestClient

from copilot_oauth import ServiceToken, TokenManager
from providers import CopilotProvider
from proxy.app import app
from proxy.dependencies import get_copilot_provider, get_token_manager
from utils.storage import InMemoryCredentialStore

ACCESS_RECORD = {"access_token": "gho_test", "token_type": "bearer", "scope": "read:user"}


@pytest.fixture
def token_factory():
    """Build service tokens expiring ``lifetime`` seconds from now"""
    def _make(lifetime: int = 1800, token: str = "tid=copilot-test") -> ServiceToken:
        return ServiceToken(token=token, expires_at=int(time.time()) + lifetime, refresh_in=1500)
    return _make


@pytest.fixture
def memory_store():
    return InMemoryCredentialStore()


@pytest.fixture
def authorized_store(memory_store, token_factory):
    memory_store.set("access_token", dict(ACCESS_RECORD))
    memory_store.set("token", token_factory().to_record())
    return memory_store


@pytest.fixture
def sse_body():
    """Join payloads into an upstream SSE body terminated by [DONE]"""
    def _body(*payloads: str, done: bool = True) -> str:
        lines = [f"data: {payload}\n\n" for payload in payloads]
        if done:
            lines.append("data: [DONE]\n\n")
        return "".join(lines)
    return _body


@pytest.fixture
def make_client():
    """TestClient factory bound to a given credential store"""
    clients = []

    def _make(store) -> TestClient:
        token_manager = TokenManager(store=store)
        app.dependency_overrides[get_token_manager] = lambda: token_manager
        app.dependency_overrides[get_copilot_provider] = lambda: CopilotProvider()
        client = TestClient(app)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()
    app.dependency_overrides.clear()


@pytest.fixture
def client(make_client, authorized_store):
    return make_client(authorized_store)
