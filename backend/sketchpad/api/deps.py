from fastapi import Request

from sketchpad.services.drawing_store import DrawingStore


def get_store(request: Request) -> DrawingStore:
    """The store the application factory attached at startup."""
    return request.app.state.store
