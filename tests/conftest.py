from pathlib import Path
from typing import List, Optional

import httpx
import pytest
from rets_client import ClientConfig, RetsClient

FIXTURES_DIR = Path(__file__).parent / "fixtures"

LOGIN_URL = "http://rets.example.com:6103/rets/login"
BASE = "http://rets.example.com:6103"


class RecordingAuthenticator:
    """Stands in for the digest computation; records every call."""

    def __init__(self):
        self.calls: List[dict] = []

    def authenticate(
        self,
        challenge: httpx.Response,
        username: str,
        password: str,
        path: str,
        method: str,
        request_id: Optional[str],
        user_agent: Optional[str],
        nonce_count: int,
    ) -> str:
        self.calls.append(
            {
                "status": challenge.status_code,
                "username": username,
                "password": password,
                "path": path,
                "method": method,
                "request_id": request_id,
                "user_agent": user_agent,
                "nonce_count": nonce_count,
            }
        )
        return f'Digest username="{username}", nc={nonce_count:08x}'


def load_fixture(name: str) -> bytes:
    return (FIXTURES_DIR / name).read_bytes()


@pytest.fixture
def fixture_bytes():
    return load_fixture


@pytest.fixture
def authenticator():
    return RecordingAuthenticator()


@pytest.fixture
def make_client(authenticator):
    created: List[RetsClient] = []

    def _make(**config_kwargs) -> RetsClient:
        client = RetsClient(
            LOGIN_URL,
            config=ClientConfig(**config_kwargs),
            authenticator=authenticator,
        )
        created.append(client)
        return client

    yield _make

    for client in created:
        client.close()
