import io

import pytest
from PIL import Image as PILImage

from sketchpad.editor.surface import BitmapSurface


def _stroke(surface, color=(255, 0, 0), opacity=1.0, erase=False, width=4):
    mask = surface.new_mask()
    surface.draw_segment(mask, (5, 10), (15, 10), width)
    surface.draw_stroke(surface.copy(), mask, color, opacity, erase=erase)


def test_new_surface_is_transparent():
    surface = BitmapSurface(20, 20)

    assert surface.size == (20, 20)
    assert surface.image.getpixel((10, 10)) == (0, 0, 0, 0)


def test_paint_stroke_covers_the_segment():
    surface = BitmapSurface(20, 20)

    _stroke(surface)

    assert surface.image.getpixel((10, 10)) == (255, 0, 0, 255)
    assert surface.image.getpixel((10, 2)) == (0, 0, 0, 0)


def test_stroke_opacity_applies_once():
    surface = BitmapSurface(20, 20)

    _stroke(surface, opacity=0.5)

    r, g, b, a = surface.image.getpixel((10, 10))
    assert 126 <= a <= 130
    assert r >= 250


def test_eraser_punches_through_alpha():
    surface = BitmapSurface(20, 20)
    surface.image = PILImage.new("RGBA", (20, 20), (0, 0, 255, 255))

    _stroke(surface, erase=True)

    assert surface.image.getpixel((10, 10))[3] == 0
    assert surface.image.getpixel((10, 2)) == (0, 0, 255, 255)


def test_partial_eraser_keeps_remaining_alpha():
    surface = BitmapSurface(20, 20)
    surface.image = PILImage.new("RGBA", (20, 20), (0, 0, 255, 255))

    _stroke(surface, erase=True, opacity=0.5)

    assert 125 <= surface.image.getpixel((10, 10))[3] <= 129


def test_draw_image_blits_into_box():
    surface = BitmapSurface(20, 20)
    red = PILImage.new("RGBA", (5, 5), (255, 0, 0, 255))

    surface.draw_image(red, (10, 0, 10, 10))

    assert surface.image.getpixel((15, 5)) == (255, 0, 0, 255)
    assert surface.image.getpixel((5, 5)) == (0, 0, 0, 0)


def test_snapshot_restore_returns_to_previous_pixels():
    surface = BitmapSurface(20, 20)
    before = surface.snapshot()
    _stroke(surface)

    surface.restore(before)

    assert surface.image.getpixel((10, 10)) == (0, 0, 0, 0)


def test_resize_keeps_pixels_top_left():
    surface = BitmapSurface(20, 20)
    _stroke(surface)

    surface.resize(30, 12)

    assert surface.size == (30, 12)
    assert surface.image.getpixel((10, 10)) == (255, 0, 0, 255)


def test_png_export_is_lossless():
    surface = BitmapSurface(20, 20)
    _stroke(surface)

    exported = PILImage.open(io.BytesIO(surface.export("png")))

    assert exported.format == "PNG"
    assert exported.convert("RGBA").tobytes() == surface.image.tobytes()


def test_jpeg_export_flattens_onto_white():
    surface = BitmapSurface(20, 20)

    exported = PILImage.open(io.BytesIO(surface.export("jpg", quality=90)))

    assert exported.format == "JPEG"
    assert all(channel >= 250 for channel in exported.getpixel((2, 2)))


def test_webp_export():
    surface = BitmapSurface(20, 20)
    _stroke(surface)

    exported = PILImage.open(io.BytesIO(surface.export("webp")))

    assert exported.format == "WEBP"
    assert exported.size == (20, 20)


def test_data_url_uses_format_mime():
    surface = BitmapSurface(4, 4)

    assert surface.to_data_url("jpeg").startswith("data:image/jpeg;base64,")
    assert surface.to_data_url().startswith("data:image/png;base64,")


def test_unknown_export_format_is_rejected():
    with pytest.raises(ValueError):
        BitmapSurface(4, 4).export("bmp")
