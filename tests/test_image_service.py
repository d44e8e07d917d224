from io import BytesIO

from PIL import Image

from trekmed.services.image_service import MAX_DIMENSION, compress_image

def _png(width, height, mode="RGB"):
    buffer = BytesIO()
    Image.new(mode, (width, height), color=(200, 80, 40, 255)[:len(mode)]).save(buffer, format="PNG")
    return buffer.getvalue()

def test_large_image_is_resized_to_jpeg():
    result = compress_image(_png(4000, 3000))
    with Image.open(BytesIO(result)) as img:
        assert img.format == "JPEG"
        assert max(img.size) == MAX_DIMENSION
        assert img.size == (1920, 1440)

def test_small_image_keeps_dimensions():
    with Image.open(BytesIO(compress_image(_png(640, 480)))) as img:
        assert img.size == (640, 480)
        assert img.format == "JPEG"

def test_transparent_image_is_flattened():
    with Image.open(BytesIO(compress_image(_png(100, 100, mode="RGBA")))) as img:
        assert img.mode == "RGB"

def test_respects_byte_limit():
    assert len(compress_image(_png(2000, 2000), max_bytes=200_000)) <= 200_000

def test_invalid_bytes_are_returned_unchanged():
    assert compress_image(b"isto nao e uma imagem") == b"isto nao e uma imagem"
