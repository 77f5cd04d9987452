"""Error kinds shared by the record store, the HTTP client and the editor."""
from typing import Any, List, Optional


class SketchpadError(Exception):
    """Base class for every recoverable Sketchpad failure."""


class DrawingValidationError(SketchpadError):
    """A create/update payload is missing a required field or has the wrong shape."""

    def __init__(self, message: str = "Invalid drawing data", errors: Optional[List[Any]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class DrawingNotFoundError(SketchpadError):
    """An operation addressed a drawing id that does not exist."""

    def __init__(self, drawing_id: str):
        super().__init__(f"Drawing not found: {drawing_id}")
        self.drawing_id = drawing_id


class ImageDecodeError(SketchpadError):
    """Image bytes from a file, URL or the clipboard could not be decoded."""


class TransportError(SketchpadError):
    """Network or storage fault. The cause is chained but otherwise opaque."""
