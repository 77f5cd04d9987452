import io
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT_DIR))

import pytest
from fastapi.testclient import TestClient
from PIL import Image as PILImage

from sketchpad.db.engine import create_db_engine
from sketchpad.main import create_app
from sketchpad.services.drawing_store import MemoryDrawingStore, SqlDrawingStore


def _make_png(size=(20, 20), color=(255, 0, 0, 255), fmt="PNG") -> bytes:
    img = PILImage.new("RGBA", size, color)
    if fmt == "JPEG":
        img = img.convert("RGB")
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


@pytest.fixture()
def make_png():
    return _make_png


@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture()
def memory_store():
    return MemoryDrawingStore()


@pytest.fixture()
def sql_store(engine):
    return SqlDrawingStore(engine)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, engine):
    if request.param == "sqlite":
        return SqlDrawingStore(engine)
    return MemoryDrawingStore()


@pytest.fixture()
def app(memory_store):
    return create_app(store=memory_store)


@pytest.fixture()
def client(app):
    return TestClient(app)
