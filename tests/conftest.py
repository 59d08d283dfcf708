import pytest
import pytest_asyncio
import httpx

from serialgate.config import Settings
from serialgate.main import create_app
from tests.helpers import ADMIN_TOKEN

@pytest.fixture(scope="function")
def app(tmp_path):
    settings = Settings(admin_token=ADMIN_TOKEN, database_url=f"sqlite:///{tmp_path / 'serials.db'}")
    app = create_app(settings)
    try:
        yield app
    finally:
        app.state.engine.dispose()

@pytest.fixture(scope="function")
def store(app):
    return app.state.store

@pytest_asyncio.fixture(scope="function")
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test", timeout=10.0) as c:
        yield c
