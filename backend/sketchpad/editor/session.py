"""One editing session: a canvas, its image channel and the record store it saves to."""
import logging
from datetime import date
from typing import Any, Callable, List, Optional, Protocol, Union

from sketchpad.core.config import Settings, settings
from sketchpad.core.errors import DrawingNotFoundError
from sketchpad.editor.controller import DrawingController
from sketchpad.editor.imaging import ImageSource, sniff_data_url
from sketchpad.editor.surface import BitmapSurface
from sketchpad.models.drawing import DrawingCreate, DrawingUpdate

logger = logging.getLogger(__name__)

ImageCallback = Callable[[ImageSource], Any]


class RecordStore(Protocol):
    """What a session needs from a store; DrawingStore and DrawingsClient both fit."""

    def list(self) -> List[Any]: ...

    def get(self, drawing_id: str) -> Optional[Any]: ...

    def create(self, data: DrawingCreate) -> Any: ...

    def update(self, drawing_id: str, changes: DrawingUpdate) -> Optional[Any]: ...


class ImageChannel:
    """Publish/subscribe channel for decoded-image hand-off within one session."""

    def __init__(self):
        self._subscribers: List[ImageCallback] = []

    def subscribe(self, callback: ImageCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def publish(self, image: ImageSource) -> None:
        for callback in list(self._subscribers):
            callback(image)

    def __len__(self) -> int:
        return len(self._subscribers)


def default_drawing_name(today: Optional[date] = None) -> str:
    return f"Drawing_{(today or date.today()).isoformat()}"


class EditingSession:
    def __init__(
        self,
        store: RecordStore,
        controller: Optional[DrawingController] = None,
        channel: Optional[ImageChannel] = None,
        app_settings: Optional[Settings] = None,
    ):
        cfg = app_settings or settings
        self.store = store
        self.controller = controller or DrawingController(
            BitmapSurface(cfg.CANVAS_WIDTH, cfg.CANVAS_HEIGHT), app_settings=cfg
        )
        self.channel = channel or ImageChannel()
        self._unsubscribe = self.channel.subscribe(self.controller.load_image)
        self.drawing_id: Optional[str] = None
        self.original_image: Optional[str] = None
        self._original_persisted = False

    def import_image(self, image: ImageSource) -> None:
        """
        Hand an image from any source (file, URL, clipboard) to the canvas.

        The first import becomes the record's original image.
        """
        self.channel.publish(image)
        if self.original_image is None:
            self.original_image = image if isinstance(image, str) else sniff_data_url(image)

    def save(self, name: Optional[str] = None) -> Any:
        """Create the record on first save, update it afterwards."""
        image_data = self.controller.export_data_url("png")
        if image_data is None:
            raise RuntimeError("No canvas attached to this session")
        surface = self.controller.surface
        metadata = {
            "width": surface.width,
            "height": surface.height,
            "format": "png",
            "tools_used": list(self.controller.tools_used),
        }

        if self.drawing_id is not None:
            changes = {"image_data": image_data, "metadata": metadata}
            if name is not None:
                changes["name"] = name
            # The record may predate the first import.
            if self.original_image is not None and not self._original_persisted:
                changes["original_image"] = self.original_image
            record = self.store.update(self.drawing_id, DrawingUpdate(**changes))
            if record is not None:
                self._original_persisted = record.original_image is not None
                logger.info("Saved drawing", extra={"drawing_id": record.id})
                return record
            logger.warning("Drawing disappeared; saving a new copy", extra={"drawing_id": self.drawing_id})

        record = self.store.create(
            DrawingCreate(
                name=name or default_drawing_name(),
                image_data=image_data,
                original_image=self.original_image,
                metadata=metadata,
            )
        )
        self.drawing_id = record.id
        self._original_persisted = record.original_image is not None
        logger.info("Saved drawing", extra={"drawing_id": record.id})
        return record

    def load(self, drawing: Union[str, Any]) -> Any:
        """Load a record (or the record with this id) into the canvas."""
        record = drawing
        if isinstance(drawing, str):
            record = self.store.get(drawing)
            if record is None:
                raise DrawingNotFoundError(drawing)
        self.channel.publish(record.image_data)
        self.drawing_id = record.id
        self.original_image = record.original_image
        self._original_persisted = record.original_image is not None
        return record

    def list_drawings(self) -> List[Any]:
        return self.store.list()

    def close(self) -> None:
        self._unsubscribe()
