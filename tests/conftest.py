import io
import os
import tempfile

# keep the module-level database default out of the working tree
os.environ.setdefault("DATABASE_PATH", os.path.join(tempfile.mkdtemp(), "pastes.db"))

import httpx
import pytest
from databases import Database
from PIL import Image

import db_sqlalchemy
from auth import REGISTRATION_COOKIE, issue_registration_token
from main import app
from queries import Queries, get_queries
from utils import now_utc

API_HOST = "http://pastemyst.test"


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def queries(anyio_backend, tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    await db_sqlalchemy.init_db(url)
    database = Database(url)
    await database.connect()
    yield Queries(database)
    await database.disconnect()


@pytest.fixture
def api_host():
    return API_HOST


@pytest.fixture
def avatars_dir(tmp_path, monkeypatch):
    path = tmp_path / "avatars"
    path.mkdir()
    monkeypatch.setenv("AVATARS_DIR", str(path))
    monkeypatch.setenv("API_HOST", API_HOST)
    return path


@pytest.fixture
async def client(queries):
    app.dependency_overrides[get_queries] = lambda: queries
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
async def user(queries):
    return await queries.create_user(
        id="u1234567",
        created_at=now_utc(),
        username="codemyst",
        avatar_url="https://avatars.githubusercontent.com/u/1",
        provider_name="GitHub",
        provider_id="1",
    )


@pytest.fixture
def login(client):
    """Sign `user` in through the registration cookie and a real session cookie."""
    async def _login(user):
        client.cookies.set(REGISTRATION_COOKIE, issue_registration_token(user.provider_name, user.provider_id))
        resp = await client.post("/api/v3/auth/register", json={})
        assert resp.status_code == 200
    return _login


@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (8, 8), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()
