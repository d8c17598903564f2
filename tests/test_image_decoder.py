import base64
import io

import pytest
from PIL import Image

from models.diagram_models import EncodedImage
from models.errors import ReadError
from services.image_decoder import ImageDecoder


def reopen(image: EncodedImage) -> Image.Image:
    return Image.open(io.BytesIO(image.to_bytes()))


def test_png_upload_passes_through_unchanged(picture_bytes):
    raw = picture_bytes(fmt="PNG")
    image = ImageDecoder().decode_bytes(raw)
    assert image.mime_type == "image/png"
    assert image.to_bytes() == raw


def test_jpeg_upload_keeps_its_media_type(picture_bytes):
    raw = picture_bytes(fmt="JPEG")
    image = ImageDecoder().decode_bytes(raw)
    assert image.mime_type == "image/jpeg"
    assert image.to_bytes() == raw


def test_other_formats_are_reencoded_as_png(picture_bytes):
    image = ImageDecoder().decode_bytes(picture_bytes(fmt="BMP"))
    assert image.mime_type == "image/png"
    assert reopen(image).format == "PNG"


def test_oversized_sketch_is_downscaled(picture_bytes):
    image = ImageDecoder(max_side=16).decode_bytes(picture_bytes(size=(64, 32)))
    assert reopen(image).size == (16, 8)


def test_oversized_jpeg_stays_jpeg(picture_bytes):
    image = ImageDecoder(max_side=10).decode_bytes(picture_bytes(size=(40, 20), fmt="JPEG"))
    assert image.mime_type == "image/jpeg"
    assert reopen(image).size == (10, 5)


def test_oversized_cmyk_jpeg_is_converted_to_rgb(picture_bytes):
    raw = picture_bytes(size=(40, 20), fmt="JPEG", mode="CMYK", color=(0, 0, 0, 0))
    image = ImageDecoder(max_side=10).decode_bytes(raw)
    assert image.mime_type == "image/jpeg"
    with reopen(image) as out:
        assert out.mode == "RGB"
        assert out.size == (10, 5)


def test_palette_gif_is_reencoded_as_png(picture_bytes):
    raw = picture_bytes(size=(8, 8), fmt="GIF", mode="P", color=3)
    image = ImageDecoder().decode_bytes(raw)
    assert image.mime_type == "image/png"
    assert reopen(image).size == (8, 8)


@pytest.mark.parametrize("raw", [b"", b"not an image at all", b"\x89PNG\r\n\x1a\n broken"])
def test_undecodable_bytes_raise_read_error(raw):
    with pytest.raises(ReadError):
        ImageDecoder().decode_bytes(raw)


def test_canvas_data_url_is_decoded(picture_bytes):
    raw = picture_bytes(size=(600, 400))
    data_url = "data:image/png;base64," + base64.b64encode(raw).decode("utf-8")

    image = ImageDecoder().decode_data_url(data_url)

    assert image.mime_type == "image/png"
    assert image.to_bytes() == raw


@pytest.mark.parametrize(
    "data_url",
    [
        "",
        "data:image/png;base64,",
        "image/png;base64,AAAA",
        "data:image/png;base64,!!!not-base64!!!",
        "data:image/png;base64," + base64.b64encode(b"plain text").decode("utf-8"),
    ],
)
def test_bad_drawing_raises_read_error(data_url):
    with pytest.raises(ReadError):
        ImageDecoder().decode_data_url(data_url)
