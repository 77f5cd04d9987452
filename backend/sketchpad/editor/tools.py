"""Tool state and pointer-to-canvas coordinate mapping."""
import enum
from dataclasses import dataclass, field
from typing import NamedTuple, Sequence, Tuple

from PIL import ImageColor

MIN_BRUSH_SIZE = 1
MAX_BRUSH_SIZE = 50
MIN_OPACITY = 0.1
MAX_OPACITY = 1.0

PALETTE = (
    "#000000", "#EF4444", "#3B82F6", "#10B981",
    "#F59E0B", "#8B5CF6", "#EC4899", "#6B7280",
)


class Tool(str, enum.Enum):
    BRUSH = "brush"
    ERASER = "eraser"
    PEN = "pen"
    HIGHLIGHTER = "highlighter"

    @property
    def erases(self) -> bool:
        return self is Tool.ERASER


class Point(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class ToolState:
    tool: Tool = Tool.BRUSH
    color: str = "#000000"
    width: int = 5
    opacity: float = 1.0

    def __post_init__(self):
        # Accept plain strings such as "eraser" from callers.
        object.__setattr__(self, "tool", Tool(self.tool))
        if not MIN_BRUSH_SIZE <= self.width <= MAX_BRUSH_SIZE:
            raise ValueError(f"Brush width must be between {MIN_BRUSH_SIZE} and {MAX_BRUSH_SIZE}")
        if not MIN_OPACITY <= self.opacity <= MAX_OPACITY:
            raise ValueError(f"Opacity must be between {MIN_OPACITY} and {MAX_OPACITY}")
        ImageColor.getrgb(self.color)

    @property
    def rgb(self) -> Tuple[int, int, int]:
        return ImageColor.getrgb(self.color)[:3]


@dataclass
class PointerEvent:
    """A mouse or touch event in viewport coordinates."""
    client_x: float = 0.0
    client_y: float = 0.0
    touches: Sequence[Point] = field(default_factory=tuple)
    changed_touches: Sequence[Point] = field(default_factory=tuple)

    @property
    def is_touch(self) -> bool:
        return bool(self.touches or self.changed_touches)


def canvas_position(event: PointerEvent, canvas_offset: Point) -> Point:
    """
    Translate a pointer event into canvas-local coordinates.

    Touch events use the first active contact, or the first changed contact
    once the finger has lifted. Display zoom is not applied here.
    """
    if event.is_touch:
        contact = event.touches[0] if event.touches else event.changed_touches[0]
        client_x, client_y = contact
    else:
        client_x, client_y = event.client_x, event.client_y
    return Point(client_x - canvas_offset.x, client_y - canvas_offset.y)
