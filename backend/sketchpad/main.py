import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sketchpad.api.endpoints import drawings, status
from sketchpad.core.config import Settings, settings
from sketchpad.core.error_handlers import register_drawing_error_handlers
from sketchpad.services.drawing_store import DrawingStore, build_store

logger = logging.getLogger(__name__)


def create_app(store: Optional[DrawingStore] = None, app_settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the API application.

    The record store is constructed here (unless one is injected) and lives on
    ``app.state`` until shutdown, so every handler shares one instance and
    tests can pass their own.
    """
    app_settings = app_settings or settings
    logging.getLogger("sketchpad").setLevel(app_settings.LOG_LEVEL)

    app = FastAPI(title=f"{app_settings.PROJECT_NAME} Backend", version=app_settings.APP_VERSION)
    app.state.settings = app_settings
    app.state.store = store if store is not None else build_store(app_settings)
    register_drawing_error_handlers(app, path_prefix=f"{app_settings.API_PREFIX}/drawings")

    @app.on_event("shutdown")
    def on_shutdown():
        app.state.store.close()

    # CORS
    if app_settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in app_settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(drawings.router, prefix=f"{app_settings.API_PREFIX}/drawings", tags=["drawings"])
    app.include_router(status.router, prefix=app_settings.API_PREFIX)

    @app.get("/")
    def root():
        return {"message": f"Welcome to {app_settings.PROJECT_NAME} API"}

    return app


app = create_app()
