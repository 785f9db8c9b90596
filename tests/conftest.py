import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

from hearth.container import build_container, set_container
from hearth.infra import postgres
from hearth.main import app
from hearth.settings import settings
from tests.fakes import FakeMailer, FakeUploader, RecordingBroadcaster, fake_repositories


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
    from hearth.infra.redis import redis_client, set_redis_client
    original = redis_client.client
    client = FakeRedis(decode_responses=True)
    set_redis_client(client)
    try:
        yield client
    finally:
        set_redis_client(original)
        await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
    async def _noop(*_args):
        return None

    monkeypatch.setattr(postgres, "init_pool", _noop)
    monkeypatch.setattr(postgres, "close_pool", _noop)
    monkeypatch.setattr(postgres, "apply_schema", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
    """API tests authenticate with X-User-* headers, which only dev accepts."""
    original_env = settings.environment
    original_token = settings.obs_admin_token
    settings.environment = "dev"
    settings.obs_admin_token = "test-admin"
    try:
        yield
    finally:
        settings.environment = original_env
        settings.obs_admin_token = original_token


@pytest.fixture
def container(fake_redis):
    from hearth.infra.redis import redis_client
    built = build_container(
        redis_client,
        repositories=fake_repositories(),
        broadcaster=RecordingBroadcaster(),
        uploader=FakeUploader(),
        mailer=FakeMailer(),
    )
    set_container(built)
    try:
        yield built
    finally:
        set_container(None)


@pytest_asyncio.fixture
async def api_client(container):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
