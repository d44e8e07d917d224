import logging
from io import BytesIO

from PIL import Image, ImageOps, UnidentifiedImageError

logger = logging.getLogger("ImageService")

MAX_SIZE_BYTES = 1024 * 1024
MAX_DIMENSION = 1920
QUALITY_STEPS = (85, 75, 65, 55, 45, 35)

def compress_image(content: bytes, max_bytes: int = MAX_SIZE_BYTES, max_dimension: int = MAX_DIMENSION) -> bytes:
    """
    Reduz a foto para JPEG de no máximo max_dimension px no maior lado,
    baixando a qualidade até caber em max_bytes.
    Se a imagem não puder ser lida, devolve o conteúdo original.
    """
    try:
        with Image.open(BytesIO(content)) as original:
            img = ImageOps.exif_transpose(original)
            if img.mode not in ("RGB", "L"):
                img = img.convert("RGB")
            img.thumbnail((max_dimension, max_dimension))

            buffer = BytesIO()
            for quality in QUALITY_STEPS:
                buffer = BytesIO()
                img.save(buffer, format="JPEG", quality=quality, optimize=True)
                if buffer.tell() <= max_bytes:
                    break
            return buffer.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        logger.warning("Compressão falhou, usando arquivo original: %s", e)
        return content
