"""
Unit test configuration.
"""

import base64
import io
import struct
import zlib

import pytest
from PIL import Image, PngImagePlugin
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from badgepress.config import settings
from badgepress.core.data import models  # noqa: F401  # pylint: disable=unused-import
from badgepress.core.data.database import Base, get_db
from badgepress.core.data.repositories import AssetRepository, RecordRepository
from badgepress.main import app

# Use in-memory SQLite for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def engine():
    """Create test database engine with fresh tables each time"""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,  # Ensures the same connection is used
    )
    return engine


@pytest.fixture(scope="function")
def db(engine):
    """Database session with automatic cleanup between tests

    This fixture:
    1. Creates all tables on a fresh in-memory database
    2. Yields a clean session for the test
    3. Drops all tables after the test completes
    """
    Base.metadata.create_all(bind=engine)

    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestSessionLocal()

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Managed asset storage under the test's tmp dir"""
    path = tmp_path / "uploads"
    path.mkdir()
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def staging_dir(tmp_path, monkeypatch):
    """Staging dir under the test's tmp dir, so leftovers can be counted"""
    path = tmp_path / "staging"
    path.mkdir()
    monkeypatch.setattr(settings, "STAGING_DIR", str(path))
    return path


@pytest.fixture
def record_repo(db):
    return RecordRepository(db)


@pytest.fixture
def asset_repo(db, upload_dir):
    return AssetRepository(db, str(upload_dir))


@pytest.fixture
def api_client(client, db, upload_dir, staging_dir):
    """App client bound to the test database session"""
    _ = upload_dir, staging_dir

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield client
    app.dependency_overrides.pop(get_db, None)


def make_png(size=(16, 16), title: str | None = None, description: str | None = None) -> bytes:
    """Small real PNG, optionally carrying Title/Description text chunks"""
    img = Image.new("RGBA", size, (200, 30, 30, 255))
    info = PngImagePlugin.PngInfo()
    if title:
        info.add_text("Title", title)
    if description:
        info.add_text("Description", description)
    buf = io.BytesIO()
    img.save(buf, format="PNG", pnginfo=info)
    return buf.getvalue()


def make_jpeg(size=(16, 16)) -> bytes:
    img = Image.new("RGB", size, (30, 30, 200))
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


def to_data_uri(data: bytes, media_type: str = "image/png") -> str:
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def png_data_uri(png_bytes):
    return to_data_uri(png_bytes)


@pytest.fixture
def designer_message(png_data_uri):
    """Designer message as posted back by the badge designer"""
    return {
        "image": png_data_uri,
        "badgeText": {"value": "Quick Learner"},
        "text": {"value": "Level", "value2": "One"},
    }


@pytest.fixture
def published_record(record_repo):
    """Published badge with valid text fields and no image yet"""
    record = record_repo.create_record(
        title="Quick Learner",
        criteria="<p>Finish the first module.</p>",
        status="published",
    )
    record_repo.set_meta(record.id, "badgepress-badge-description", "Awarded for speed.")
    return record


@pytest.fixture
def png_factory():
    return make_png


@pytest.fixture
def jpeg_factory():
    return make_jpeg


@pytest.fixture
def data_uri():
    return to_data_uri


def make_header_only_png(width: int, height: int) -> bytes:
    """PNG whose IHDR declares width x height but carries no pixel data"""

    def chunk(kind: bytes, data: bytes) -> bytes:
        crc = zlib.crc32(kind + data) & 0xFFFFFFFF
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", crc)

    ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
    return b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", ihdr) + chunk(b"IEND", b"")


@pytest.fixture
def header_only_png():
    return make_header_only_png
