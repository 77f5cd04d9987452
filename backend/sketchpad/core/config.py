import json
from typing import Annotated, List, Literal, Optional, Union
from pathlib import Path
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Sketchpad Studio"
    API_PREFIX: str = "/api"
    APP_VERSION: str = "0.3.0"

    # Root directory for all Sketchpad data
    # Can be overridden with SKETCHPAD_ROOT_DIR environment variable
    ROOT_DIR: Path = Path.home() / ".sketchpad"

    # Record storage: "memory" keeps drawings for the process lifetime only,
    # "sqlite" persists them under ROOT_DIR/meta (or DATABASE_URL if set).
    STORAGE_BACKEND: Literal["memory", "sqlite"] = "memory"
    DATABASE_URL: Optional[str] = None

    DEFAULT_DRAWING_NAME: str = "Untitled"

    # Editor defaults
    CANVAS_WIDTH: int = 800
    CANVAS_HEIGHT: int = 600
    HISTORY_CAPACITY: int = 50
    # Lossy export quality on Pillow's 1-95 scale (90 == 0.9 in browser terms)
    EXPORT_QUALITY: int = 90
    ZOOM_MIN: float = 0.1
    ZOOM_MAX: float = 10.0
    IMPORT_TIMEOUT_S: float = 30.0

    LOG_LEVEL: str = "INFO"

    # BACKEND_CORS_ORIGINS is a JSON-formatted list of origins or a comma separated string
    # e.g: '["http://localhost", "http://localhost:5173"]'
    BACKEND_CORS_ORIGINS: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    model_config = SettingsConfigDict(case_sensitive=True, env_prefix="SKETCHPAD_")

    @field_validator("BACKEND_CORS_ORIGINS", mode="before")
    @classmethod
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> Union[List[str], str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, str):
            return json.loads(v)
        elif isinstance(v, list):
            return v
        raise ValueError(v)

    @property
    def meta_dir(self) -> Path:
        """Directory for metadata files (database, config)."""
        return self.ROOT_DIR / "meta"

    @property
    def database_path(self) -> Path:
        """Path to the drawings SQLite database."""
        return self.meta_dir / "drawings.db"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{self.database_path}"

    def ensure_dirs(self) -> None:
        """Create all required directories if they don't exist."""
        self.ROOT_DIR.mkdir(parents=True, exist_ok=True)
        self.meta_dir.mkdir(exist_ok=True)


settings = Settings()
