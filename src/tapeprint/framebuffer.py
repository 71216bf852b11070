"""Monochrome framebuffer backed by a Pillow 1-bit image."""

from pathlib import Path

from PIL import Image, ImageChops, ImageDraw


class Framebuffer:
    """Rectangular grid of boolean pixels; True means the dot is printed.

    Pixels are stored in a Pillow mode "1" image where a non-zero value
    marks a set (black) dot. This is the inverse of Pillow's own display
    convention, so use ``to_image()`` to get something viewable.
    """

    def __init__(self, width: int, height: int) -> None:
        if width < 0 or height < 0:
            raise ValueError(f"Invalid framebuffer size {width}x{height}")
        self.width = width
        self.height = height
        self._image = Image.new("1", (width, height), 0)

    @classmethod
    def from_image(cls, image: Image.Image, threshold: int = 128) -> "Framebuffer":
        """Build a framebuffer from any Pillow image; dark pixels become set."""
        if image.mode in ("RGBA", "LA", "PA") or "transparency" in image.info:
            # Transparent areas are blank tape
            rgba = image.convert("RGBA")
            image = Image.alpha_composite(Image.new("RGBA", rgba.size, "white"), rgba)
        gray = image.convert("L")
        fb = cls(gray.width, gray.height)
        fb._image = gray.point(lambda v: 255 if v < threshold else 0).convert("1", dither=Image.Dither.NONE)
        return fb

    def _in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_pixel(self, x: int, y: int) -> bool:
        """Return the pixel at (x, y); out-of-bounds reads are unset."""
        if not self._in_bounds(x, y):
            return False
        return bool(self._image.getpixel((x, y)))

    def set_pixel(self, x: int, y: int, value: bool = True) -> None:
        """Set the pixel at (x, y); out-of-bounds writes are clipped."""
        if self._in_bounds(x, y):
            self._image.putpixel((x, y), 255 if value else 0)

    def draw_rectangle(self, x: int, y: int, width: int, height: int, fill: bool = True) -> None:
        """Fill an axis-aligned rectangle, clipped to the framebuffer."""
        if width <= 0 or height <= 0:
            return
        draw = ImageDraw.Draw(self._image)
        draw.rectangle((x, y, x + width - 1, y + height - 1), fill=255 if fill else 0)

    def overlay_or(self, other: "Framebuffer", x: int, y: int) -> None:
        """Merge ``other`` into this framebuffer at offset (x, y).

        Pixels are combined with logical OR: a set pixel is never cleared.
        Parts of ``other`` outside this framebuffer are dropped.
        """
        if 0 in (self.width, self.height, other.width, other.height):
            return
        layer = Image.new("1", (self.width, self.height), 0)
        layer.paste(other._image, (x, y))
        self._image = ImageChops.logical_or(self._image, layer)

    def count_set(self) -> int:
        """Number of set pixels."""
        if self.width == 0 or self.height == 0:
            return 0
        # Mode "1" pixels are either 0 or 255
        return self._image.histogram()[255]

    def to_image(self) -> Image.Image:
        """Render as a grayscale image: black for set dots, white otherwise."""
        return self._image.convert("L").point(lambda v: 0 if v else 255)

    def save_preview(self, path: Path) -> None:
        """Write a PNG preview with one pixel per device dot."""
        self.to_image().save(path, format="PNG")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Framebuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self._image.tobytes() == other._image.tobytes()
        )

    def __repr__(self) -> str:
        return f"Framebuffer({self.width}x{self.height})"
