from sketchpad.core.config import Settings
from sketchpad.models.drawing import DrawingCreate
from sketchpad.services.drawing_store import MemoryDrawingStore, SqlDrawingStore, build_store


def test_cors_origins_accept_comma_separated_string():
    settings = Settings(BACKEND_CORS_ORIGINS="http://a.test, http://b.test")

    assert settings.BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_cors_origins_from_env_comma_separated(monkeypatch):
    monkeypatch.setenv("SKETCHPAD_BACKEND_CORS_ORIGINS", "http://a.test,http://b.test")

    assert Settings().BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_cors_origins_from_env_json_list(monkeypatch):
    monkeypatch.setenv("SKETCHPAD_BACKEND_CORS_ORIGINS", '["http://a.test", "http://b.test"]')

    assert Settings().BACKEND_CORS_ORIGINS == ["http://a.test", "http://b.test"]


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("SKETCHPAD_HISTORY_CAPACITY", "7")

    assert Settings().HISTORY_CAPACITY == 7


def test_default_database_lives_under_root_dir(tmp_path):
    settings = Settings(ROOT_DIR=tmp_path)

    assert settings.database_url == f"sqlite:///{tmp_path / 'meta' / 'drawings.db'}"
    assert Settings(ROOT_DIR=tmp_path, DATABASE_URL="sqlite://").database_url == "sqlite://"


def test_build_store_defaults_to_memory():
    store = build_store(Settings(DEFAULT_DRAWING_NAME="Sketch"))

    assert isinstance(store, MemoryDrawingStore)
    assert store.create(DrawingCreate(image_data="x")).name == "Sketch"


def test_sqlite_store_survives_restart(tmp_path):
    settings = Settings(ROOT_DIR=tmp_path, STORAGE_BACKEND="sqlite")

    store = build_store(settings)
    assert isinstance(store, SqlDrawingStore)
    created = store.create(DrawingCreate(name="Kept", image_data="x"))
    store.close()

    reopened = build_store(settings)
    assert reopened.get(created.id).name == "Kept"
    reopened.close()
    assert (tmp_path / "meta" / "drawings.db").exists()
