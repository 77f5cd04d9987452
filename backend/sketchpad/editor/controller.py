"""Turns pointer input into strokes on a bitmap surface and keeps undo history."""
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image as PILImage

from sketchpad.core.config import Settings, settings
from sketchpad.editor.history import HistoryBuffer
from sketchpad.editor.imaging import ImageSource, decode_image
from sketchpad.editor.surface import BitmapSurface, export_format
from sketchpad.editor.tools import Point, ToolState

logger = logging.getLogger(__name__)

ZOOM_IN_STEP = 1.2
ZOOM_OUT_STEP = 0.8


@dataclass
class _ActiveStroke:
    tool_state: ToolState
    base: PILImage.Image
    mask: PILImage.Image
    last_point: Point


def fit_box(image_size: Tuple[int, int], canvas_size: Tuple[int, int]) -> Tuple[int, int, int, int]:
    """Scale ``image_size`` to fit the canvas keeping aspect ratio, centred. Returns (x, y, w, h)."""
    img_w, img_h = image_size
    canvas_w, canvas_h = canvas_size
    scale = min(canvas_w / img_w, canvas_h / img_h)
    width = max(1, round(img_w * scale))
    height = max(1, round(img_h * scale))
    return (canvas_w - width) // 2, (canvas_h - height) // 2, width, height


class DrawingController:
    """
    Editing state for one canvas.

    Every operation is a no-op when no surface is attached. Each completed
    stroke, image load and clear appends one snapshot to the history; the
    state before the first edit is recorded too, so the first edit can be
    undone.
    """

    def __init__(
        self,
        surface: Optional[BitmapSurface] = None,
        history: Optional[HistoryBuffer] = None,
        tool_state: Optional[ToolState] = None,
        app_settings: Optional[Settings] = None,
    ):
        cfg = app_settings or settings
        self.surface = surface
        self.history = history or HistoryBuffer(cfg.HISTORY_CAPACITY)
        self.tool_state = tool_state or ToolState()
        self.zoom = 1.0
        self.zoom_min = cfg.ZOOM_MIN
        self.zoom_max = cfg.ZOOM_MAX
        self.export_quality = cfg.EXPORT_QUALITY
        self.tools_used: List[str] = []
        self.has_image = False
        self._stroke: Optional[_ActiveStroke] = None

    @property
    def is_drawing(self) -> bool:
        return self._stroke is not None

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def _record_baseline(self) -> None:
        if len(self.history) == 0:
            self.history.push(self.surface.snapshot())

    def _commit(self) -> None:
        self.history.push(self.surface.snapshot())

    # Strokes

    def begin_stroke(self, point: Point, tool_state: Optional[ToolState] = None) -> None:
        if self.surface is None:
            return
        if tool_state is not None:
            self.tool_state = tool_state
        self._record_baseline()
        state = self.tool_state
        if state.tool.value not in self.tools_used:
            self.tools_used.append(state.tool.value)
        self._stroke = _ActiveStroke(
            tool_state=state,
            base=self.surface.copy(),
            mask=self.surface.new_mask(),
            last_point=Point(*point),
        )
        # A click without movement still leaves a dot.
        self._extend(Point(*point))

    def extend_stroke(self, point: Point) -> None:
        if self._stroke is None:
            return
        self._extend(Point(*point))

    def _extend(self, point: Point) -> None:
        stroke = self._stroke
        state = stroke.tool_state
        self.surface.draw_segment(stroke.mask, stroke.last_point, point, state.width)
        self.surface.draw_stroke(
            stroke.base, stroke.mask, state.rgb, state.opacity, erase=state.tool.erases
        )
        stroke.last_point = point

    def end_stroke(self) -> None:
        if self._stroke is None:
            return
        self._stroke = None
        self._commit()

    # The pointer leaving the canvas finishes the stroke.
    cancel_stroke = end_stroke

    # Whole-canvas edits

    def load_image(self, image: ImageSource) -> None:
        """
        Replace the canvas with ``image`` scaled to fit and centred.

        Raises ImageDecodeError, leaving canvas and history untouched, when
        the image cannot be decoded.
        """
        if self.surface is None:
            return
        decoded = decode_image(image)
        self._stroke = None
        self._record_baseline()
        self.surface.clear()
        self.surface.draw_image(decoded, fit_box(decoded.size, self.surface.size))
        self.has_image = True
        self._commit()
        logger.info("Loaded image", extra={"image_size": decoded.size, "canvas_size": self.surface.size})

    def clear(self) -> None:
        if self.surface is None:
            return
        self._stroke = None
        self._record_baseline()
        self.surface.clear()
        self._commit()

    def resize(self, width: int, height: int) -> None:
        """Resize the canvas, e.g. when its container changes. Not an undoable edit."""
        if self.surface is None:
            return
        self.surface.resize(width, height)

    # History

    def undo(self) -> bool:
        if self.surface is None or self._stroke is not None:
            return False
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self.surface.restore(snapshot)
        return True

    def redo(self) -> bool:
        if self.surface is None or self._stroke is not None:
            return False
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self.surface.restore(snapshot)
        return True

    # Display zoom; never touches bitmap coordinates.

    def set_zoom(self, factor: float) -> float:
        if factor <= 0:
            raise ValueError("Zoom factor must be positive")
        self.zoom = min(max(factor, self.zoom_min), self.zoom_max)
        return self.zoom

    def zoom_in(self) -> float:
        return self.set_zoom(self.zoom * ZOOM_IN_STEP)

    def zoom_out(self) -> float:
        return self.set_zoom(self.zoom * ZOOM_OUT_STEP)

    def reset_zoom(self) -> float:
        self.zoom = 1.0
        return self.zoom

    # Export

    def export_bitmap(self, fmt: str = "png", quality: Optional[int] = None) -> Optional[bytes]:
        if self.surface is None:
            return None
        return self.surface.export(fmt, self.export_quality if quality is None else quality)

    def export_data_url(self, fmt: str = "png", quality: Optional[int] = None) -> Optional[str]:
        if self.surface is None:
            return None
        return self.surface.to_data_url(fmt, self.export_quality if quality is None else quality)

    def save_to_file(
        self,
        directory: Union[str, Path],
        file_name: str = "my_drawing",
        fmt: str = "png",
    ) -> Optional[Path]:
        """Write ``<file_name>.<fmt>`` into ``directory`` and return its path."""
        export_format(fmt)
        data = self.export_bitmap(fmt)
        if data is None:
            return None
        path = Path(directory) / f"{file_name}.{fmt.lower()}"
        path.write_bytes(data)
        return path
