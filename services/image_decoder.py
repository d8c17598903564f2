"""Sketch decoding service.

Turns uploaded files and canvas data URLs into `EncodedImage` values the
generation service accepts. Pillow verifies the bytes really are an image,
oversized sketches are downscaled, and formats the image model does not take
directly are re-encoded as PNG.

Public class: `ImageDecoder`

Example:
    decoder = ImageDecoder(max_side=2048)
    original = decoder.decode_data_url(canvas_data_url)
"""
from __future__ import annotations

import io

from PIL import Image, UnidentifiedImageError

from models.diagram_models import EncodedImage
from models.errors import ReadError
from utils.config import MAX_IMAGE_SIDE

PASSTHROUGH_FORMATS = {"PNG": "image/png", "JPEG": "image/jpeg", "WEBP": "image/webp"}


class ImageDecoder:
    """Decode and normalize source sketches.

    Args:
        max_side: Longest allowed side in pixels. Larger images are resized
            with LANCZOS resampling, preserving aspect ratio.
    """

    def __init__(self, max_side: int = MAX_IMAGE_SIDE):
        self.max_side = max_side

    def decode_bytes(self, raw: bytes) -> EncodedImage:
        """Decode raw file bytes into an `EncodedImage`.

        The format is sniffed by Pillow; the client-reported content type is
        not trusted.

        Args:
            raw: Bytes read from the uploaded file.

        Returns:
            The (possibly re-encoded) image.

        Raises:
            ReadError: If the bytes are empty or not a supported image.
        """
        if not raw:
            raise ReadError("The uploaded file is empty.")

        try:
            with Image.open(io.BytesIO(raw)) as probe:
                probe.verify()
            with Image.open(io.BytesIO(raw)) as src:
                src.load()
                fmt = (src.format or "").upper()
                if fmt in PASSTHROUGH_FORMATS and max(src.size) <= self.max_side:
                    return EncodedImage.from_bytes(raw, PASSTHROUGH_FORMATS[fmt])
                return self._reencode(src, fmt)
        except (UnidentifiedImageError, OSError, SyntaxError, ValueError) as exc:
            raise ReadError("The uploaded file is not a supported image.") from exc

    def _reencode(self, src: Image.Image, fmt: str) -> EncodedImage:
        """Downscale if needed and re-encode as JPEG (for JPEG input) or PNG."""
        if max(src.size) > self.max_side:
            src.thumbnail((self.max_side, self.max_side), Image.LANCZOS)

        if fmt == "JPEG":
            out_format, out_mime = "JPEG", "image/jpeg"
            if src.mode not in ("RGB", "L"):
                src = src.convert("RGB")
        else:
            out_format, out_mime = "PNG", "image/png"
            if src.mode not in ("RGB", "RGBA", "L", "LA", "P"):
                src = src.convert("RGBA")

        out_io = io.BytesIO()
        src.save(out_io, format=out_format)
        return EncodedImage.from_bytes(out_io.getvalue(), out_mime)

    def decode_data_url(self, data_url: str) -> EncodedImage:
        """Decode a `data:` URL produced by a file reader or a drawing canvas.

        Raises:
            ReadError: If the URL is malformed or does not hold an image.
        """
        try:
            raw = EncodedImage.from_data_url(data_url).to_bytes()
        except ValueError as exc:
            raise ReadError("The drawing could not be read.") from exc
        return self.decode_bytes(raw)
