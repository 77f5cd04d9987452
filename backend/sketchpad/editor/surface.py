"""Pillow-backed RGBA drawing surface."""
import io
from typing import Optional, Tuple

from PIL import Image as PILImage, ImageChops, ImageDraw

from sketchpad.editor.history import Snapshot
from sketchpad.editor.imaging import encode_data_url

EXPORT_FORMATS = {
    "png": ("PNG", "image/png"),
    "jpg": ("JPEG", "image/jpeg"),
    "jpeg": ("JPEG", "image/jpeg"),
    "webp": ("WEBP", "image/webp"),
}
DEFAULT_QUALITY = 90
TRANSPARENT = (0, 0, 0, 0)


def export_format(fmt: str) -> Tuple[str, str]:
    """(Pillow format, MIME type) for an export format name."""
    try:
        return EXPORT_FORMATS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unsupported export format: {fmt}") from None


class BitmapSurface:
    """A transparent RGBA canvas supporting strokes, image blits and export."""

    def __init__(self, width: int, height: int):
        if width < 1 or height < 1:
            raise ValueError("Canvas dimensions must be positive")
        self.image = PILImage.new("RGBA", (width, height), TRANSPARENT)

    @property
    def size(self) -> Tuple[int, int]:
        return self.image.size

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def copy(self) -> PILImage.Image:
        return self.image.copy()

    def new_mask(self) -> PILImage.Image:
        """Blank single-channel coverage mask the size of the canvas."""
        return PILImage.new("L", self.size, 0)

    @staticmethod
    def draw_segment(mask: PILImage.Image, start, end, width: int) -> None:
        """Rasterise a round-capped, round-joined segment into a coverage mask."""
        draw = ImageDraw.Draw(mask)
        draw.line([tuple(start), tuple(end)], fill=255, width=width)
        if width > 2:
            r = width / 2
            for x, y in (start, end):
                draw.ellipse([x - r, y - r, x + r, y + r], fill=255)

    def draw_stroke(
        self,
        base: PILImage.Image,
        mask: PILImage.Image,
        color: Tuple[int, int, int],
        opacity: float,
        erase: bool = False,
    ) -> None:
        """
        Replace the canvas with ``base`` plus one stroke.

        Painting is source-over with the colour at ``opacity``. Erasing is
        destination-out: every pixel keeps ``1 - coverage * opacity`` of its
        alpha.
        """
        coverage = mask.point(lambda v: round(v * opacity))
        if erase:
            r, g, b, a = base.split()
            a = ImageChops.multiply(a, ImageChops.invert(coverage))
            self.image = PILImage.merge("RGBA", (r, g, b, a))
        else:
            layer = PILImage.new("RGBA", self.size, tuple(color) + (0,))
            layer.putalpha(coverage)
            self.image = PILImage.alpha_composite(base, layer)

    def draw_image(self, img: PILImage.Image, box: Tuple[int, int, int, int]) -> None:
        """Blit ``img`` scaled into ``box`` (x, y, width, height)."""
        x, y, width, height = box
        scaled = img.convert("RGBA").resize((width, height), PILImage.Resampling.LANCZOS)
        self.image.alpha_composite(scaled, dest=(x, y))

    def clear(self) -> None:
        self.image = PILImage.new("RGBA", self.size, TRANSPARENT)

    def resize(self, width: int, height: int) -> None:
        """Change the canvas size, keeping existing pixels anchored top-left."""
        resized = PILImage.new("RGBA", (width, height), TRANSPARENT)
        resized.paste(self.image, (0, 0))
        self.image = resized

    def snapshot(self) -> Snapshot:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()

    def restore(self, snapshot: Snapshot) -> None:
        with PILImage.open(io.BytesIO(snapshot)) as img:
            img.load()
            restored = img.convert("RGBA")
        if restored.size != self.size:
            canvas = PILImage.new("RGBA", self.size, TRANSPARENT)
            canvas.paste(restored, (0, 0))
            restored = canvas
        self.image = restored

    def export(self, fmt: str = "png", quality: Optional[int] = None) -> bytes:
        """Encode the canvas. PNG is lossless; JPEG and WebP use ``quality``."""
        pil_format, _ = export_format(fmt)
        quality = DEFAULT_QUALITY if quality is None else quality
        buf = io.BytesIO()
        if pil_format == "PNG":
            self.image.save(buf, format="PNG")
        elif pil_format == "JPEG":
            # No alpha in JPEG; flatten onto white like the on-screen canvas.
            background = PILImage.new("RGBA", self.size, (255, 255, 255, 255))
            flattened = PILImage.alpha_composite(background, self.image).convert("RGB")
            flattened.save(buf, format="JPEG", quality=quality)
        else:
            self.image.save(buf, format=pil_format, quality=quality)
        return buf.getvalue()

    def to_data_url(self, fmt: str = "png", quality: Optional[int] = None) -> str:
        _, mime = export_format(fmt)
        return encode_data_url(self.export(fmt, quality), mime)
