"""Build label framebuffers from QR payloads and image files."""

import logging
from pathlib import Path

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_M

from tapeprint.framebuffer import Framebuffer

logger = logging.getLogger(__name__)

# Blank modules required around a QR code for scanners to find it
QUIET_ZONE = 4


def qr_label(text: str, tape_width_px: int) -> Framebuffer:
    """Render ``text`` as the largest QR code that fits across the tape.

    The code keeps the standard four-module quiet zone around it and is
    centred on a square of ``tape_width_px`` dots, then placed on a label
    exactly that long.
    """
    qr = qrcode.QRCode(
        version=None,  # Auto-size
        error_correction=ERROR_CORRECT_M,
        box_size=1,
        border=QUIET_ZONE,
    )
    qr.add_data(text)
    qr.make(fit=True)
    modules = qr.get_matrix()

    size = len(modules)
    box = tape_width_px // size
    if box == 0:
        raise ValueError(f"QR code needs {size}px but the tape is only {tape_width_px}px wide")

    square = Framebuffer(tape_width_px, tape_width_px)
    offset = (tape_width_px - size * box) // 2
    for y, row in enumerate(modules):
        for x, dark in enumerate(row):
            if dark:
                square.draw_rectangle(offset + x * box, offset + y * box, box, box)
    logger.debug(f"QR code {size}x{size} modules at {box}px per module")

    label = Framebuffer(square.width, tape_width_px)
    label.overlay_or(square, 0, (label.height - square.height) // 2)
    return label


def image_label(path: Path, tape_width_px: int) -> Framebuffer:
    """Load an image and scale it so its height fills the tape width."""
    with Image.open(path) as image:
        image.load()
        if image.height != tape_width_px:
            width = max(1, round(image.width * tape_width_px / image.height))
            image = image.resize((width, tape_width_px), Image.Resampling.LANCZOS)
        return Framebuffer.from_image(image)
