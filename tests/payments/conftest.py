import httpx
import pytest


@pytest.fixture
def mock_http():
    """Build an httpx client that answers every request with ``handler``."""
    clients = []

    def _client(handler, base_url="https://gateway.test"):
        client = httpx.Client(base_url=base_url, transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    yield _client
    for client in clients:
        client.close()
