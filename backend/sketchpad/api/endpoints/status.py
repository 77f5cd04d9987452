"""
Status API endpoints.
Reports liveness and which record store backend is serving requests.
"""
from fastapi import APIRouter, Request
from pydantic import BaseModel


router = APIRouter(tags=["status"])


class HealthStatus(BaseModel):
    status: str
    version: str
    storage: str
    drawings: int


@router.get("/health", response_model=HealthStatus)
def health(request: Request):
    app_settings = request.app.state.settings
    store = request.app.state.store
    return HealthStatus(
        status="ok",
        version=app_settings.APP_VERSION,
        storage=type(store).__name__,
        drawings=len(store.list()),
    )
