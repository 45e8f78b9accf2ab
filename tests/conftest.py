# tests/conftest.py
from __future__ import annotations

from collections.abc import AsyncIterator, Callable, Iterator
from dataclasses import dataclass, field

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from relay_chat.client import ChatClient
from relay_chat.core.settings import Settings
from relay_chat.db.memory import MemoryDatabase
from relay_chat.main import create_app
from relay_chat.services.cooldown import CooldownService
from relay_chat.services.media_host import MediaHostClient

MEDIA_HOST_URL = "https://media.test/api.php"
START_MS = 1_700_000_000_000
HOUR_MS = 60 * 60 * 1000


class FakeClock:
    """Millisecond clock advanced by hand."""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now_ms = start_ms

    def __call__(self) -> int:
        return self.now_ms

    def seconds(self) -> float:
        return self.now_ms / 1000

    def advance(self, *, ms: int = 0, seconds: float = 0, hours: float = 0) -> None:
        self.now_ms += ms + int(seconds * 1000) + int(hours * HOUR_MS)


@dataclass
class MediaHostStub:
    """Programmable handler for ``httpx.MockTransport``."""

    status_code: int = 200
    body: str = "https://files.media.test/abc123.png"
    error: Exception | None = None
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, text=self.body)


@pytest.fixture()
def test_settings() -> Settings:
    return Settings(
        secret_key="test-secret-key",
        database_backend="memory",
        sweeper_enabled=False,
        redis_url=None,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def db(clock: FakeClock) -> MemoryDatabase:
    return MemoryDatabase(clock)


@pytest.fixture()
def media_stub() -> MediaHostStub:
    return MediaHostStub()


@pytest.fixture()
def media_host(media_stub: MediaHostStub) -> MediaHostClient:
    transport = httpx.MockTransport(media_stub)
    return MediaHostClient(MEDIA_HOST_URL, timeout=5, client=httpx.AsyncClient(transport=transport))


@pytest.fixture()
def cooldown(clock: FakeClock) -> CooldownService:
    return CooldownService(7, clock=clock.seconds)


@pytest_asyncio.fixture()
async def chat(
    test_settings: Settings,
    db: MemoryDatabase,
    media_host: MediaHostClient,
    cooldown: CooldownService,
) -> AsyncIterator[ChatClient]:
    """Connected client context over the in-memory database."""
    client = ChatClient(test_settings, database=db, media_host=media_host, cooldown=cooldown)
    await client.connect()
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture()
def api(
    test_settings: Settings,
    clock: FakeClock,
    media_stub: MediaHostStub,
) -> Iterator[TestClient]:
    """TestClient for an app with no send cooldown."""
    chat_client = ChatClient(
        test_settings,
        database=MemoryDatabase(clock),
        media_host=MediaHostClient(
            MEDIA_HOST_URL,
            client=httpx.AsyncClient(transport=httpx.MockTransport(media_stub)),
        ),
        cooldown=CooldownService(0, clock=clock.seconds),
    )
    app = create_app(chat_client)
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def register_user(api: TestClient) -> Callable[..., dict[str, str]]:
    """Register a handle through the API and return its auth headers."""

    def _register(handle: str, password: str = "secret-pass") -> dict[str, str]:
        response = api.post("/api/v1/auth/register", json={"handle": handle, "password": password})
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['access_token']}"}

    return _register
