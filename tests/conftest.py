import io
import os
import tempfile
import uuid
from decimal import Decimal
from pathlib import Path

# Settings are read at import time; point them at throwaway locations first.
_TMP = Path(tempfile.mkdtemp(prefix="annotation-tests-"))
os.environ["ENV"] = "local"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP / 'app.db'}"
os.environ.setdefault("LOCAL_STORAGE_ROOT", str(_TMP / "media"))
os.environ.setdefault("DB_MANAGE", "migrations")

import pytest
from fastapi.testclient import TestClient
from jose import jwt
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, AsyncSession
from sqlalchemy.pool import NullPool

from app.core.base import Base
from app.core.config import settings
from app.core.db import get_session, make_engine
from app.core.security import Principal
from app.main import app
from app.modules.assets.service import AssetService
from app.modules.labels.schemas import LabelCreate
from app.modules.labels.service import LabelService
from app.platform.provider_registry import registry

ORG_ID = uuid.UUID(settings.DEFAULT_ORG_ID)

class InMemoryStorage:
    """Object storage double; set fail_put/fail_delete to simulate an outage."""

    def __init__(self):
        self.blobs: dict[str, bytes] = {}
        self.fail_put = False
        self.fail_delete = False

    def put_bytes(self, key: str, data: bytes, content_type: str) -> None:
        if self.fail_put:
            raise OSError("bucket unavailable")
        self.blobs[key] = data

    def delete(self, key: str) -> None:
        if self.fail_delete:
            raise OSError("bucket unavailable")
        self.blobs.pop(key, None)

    def presign_download(self, key: str, expires_seconds: int = 900) -> str:
        return f"memory://{key}?expires={expires_seconds}"

@pytest.fixture(autouse=True)
def storage():
    fake = InMemoryStorage()
    registry.set_object_storage(fake)
    yield fake
    registry.set_object_storage(None)

@pytest.fixture
def db_file(tmp_path):
    path = tmp_path / "annotation.db"
    # schema is built with the sync driver so it does not depend on any event loop
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()
    return path

@pytest.fixture
def engine(db_file):
    # NullPool: no connection outlives the event loop that opened it
    return make_engine(f"sqlite+aiosqlite:///{db_file}", poolclass=NullPool)

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)

@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s

@pytest.fixture
def owner():
    return Principal(user_id=uuid.uuid4(), org_id=ORG_ID, roles=["annotator"], scopes=["*"])

@pytest.fixture
def stranger():
    return Principal(user_id=uuid.uuid4(), org_id=ORG_ID, roles=["annotator"], scopes=["*"])

@pytest.fixture
def png_bytes():
    buf = io.BytesIO()
    Image.new("RGB", (640, 480), color=(200, 30, 30)).save(buf, format="PNG")
    return buf.getvalue()

@pytest.fixture
def mp3_bytes():
    return b"ID3\x03\x00\x00\x00\x00\x00\x0f" + b"\x00" * 256

@pytest.fixture
def client(session_factory):
    async def _session():
        async with session_factory() as s:
            yield s

    app.dependency_overrides[get_session] = _session
    yield TestClient(app)
    app.dependency_overrides.clear()

def token_for(user_id: uuid.UUID, scopes: list[str], org_id: uuid.UUID = ORG_ID) -> dict:
    claims = {"sub": str(user_id), "org_id": str(org_id), "scopes": scopes}
    tok = jwt.encode(claims, settings.JWT_SECRET, algorithm=settings.JWT_ALG)
    return {"Authorization": f"Bearer {tok}"}

@pytest.fixture
def auth():
    return token_for

@pytest.fixture
def make_audio(session, mp3_bytes):
    async def _make(principal, *, filename="interview.mp3", duration_seconds=Decimal("120.50"), **kw):
        return await AssetService(session).create(
            principal, data=mp3_bytes, filename=filename, content_type="audio/mpeg",
            duration_seconds=duration_seconds, **kw,
        )
    return _make

@pytest.fixture
def make_image(session, png_bytes):
    async def _make(principal, *, filename="street.png", width=800, height=600, **kw):
        return await AssetService(session).create(
            principal, data=png_bytes, filename=filename, content_type="image/png",
            width=width, height=height, **kw,
        )
    return _make

@pytest.fixture
def make_label(session):
    async def _make(principal, asset, name="Speech", color="#ef4444", **kw):
        return await LabelService(session).create(principal, asset.id, LabelCreate(name=name, color=color, **kw))
    return _make
