from typing import Tuple, Union
from pathlib import Path
import logging
import io

from PIL import Image, ImageOps, UnidentifiedImageError
import numpy as np

from .pdf.image_embedder import RasterImage

logger = logging.getLogger(__name__)

class ConversionError(Exception):
    pass

# Detecta formato por magic bytes. Retorna MIME o application/octet-stream si desconocido.
def detect_format(data: bytes) -> str:
    if data.startswith(b'%PDF'):
        return 'application/pdf'
    elif data.startswith(b'\xFF\xD8\xFF'):
        return 'image/jpeg'
    elif data.startswith(b'\x89PNG'):
        return 'image/png'
    elif data.startswith(b'GIF87a') or data.startswith(b'GIF89a'):
        return 'image/gif'
    elif data.startswith(b'BM'):
        return 'image/bmp'
    elif data.startswith(b'II*\x00') or data.startswith(b'MM\x00*'):
        return 'image/tiff'
    elif data[:4] == b'RIFF' and data[8:12] == b'WEBP':
        return 'image/webp'
    else:
        return 'application/octet-stream'

# Aplana cualquier imagen Pillow a RGB de 8 bits; la transparencia se compone sobre blanco.
def image_to_raster(image: Image.Image) -> RasterImage:
    image = ImageOps.exif_transpose(image)
    if image.mode in ('RGBA', 'LA') or (image.mode == 'P' and 'transparency' in image.info):
        rgba = image.convert('RGBA')
        background = Image.new('RGB', rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.split()[3])
        image = background
    elif image.mode != 'RGB':
        logger.debug(f"Converting mode {image.mode} to RGB")
        image = image.convert('RGB')

    pixels = np.asarray(image, dtype=np.uint8)
    height, width, channels = pixels.shape
    if channels != 3:
        raise ConversionError(f"Expected 3 channels after conversion, got {channels}")
    return RasterImage(width=width, height=height, pixels=np.ascontiguousarray(pixels).tobytes())

# Decodifica bytes de imagen en un RasterImage
def decode_image(data: bytes) -> RasterImage:
    try:
        with Image.open(io.BytesIO(data)) as image:
            image.load()
            logger.info(f"Image loaded: {image.size[0]}x{image.size[1]} format={image.format} mode={image.mode}")
            return image_to_raster(image)
    except (UnidentifiedImageError, OSError) as e:
        raise ConversionError(f"Cannot decode image: {e}") from e

# Lee un archivo de entrada: los PDF pasan como bytes, las imágenes se decodifican.
# Retorna el documento y su tipo MIME detectado.
def load_document(path: Union[str, Path]) -> Tuple[Union[RasterImage, bytes], str]:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ConversionError(f"Cannot read {path}: {e}") from e

    document_format = detect_format(data)
    if document_format == 'application/octet-stream' and path.suffix.lower() == '.pdf':
        document_format = 'application/pdf'
    logger.debug(f"Input {path.name}: {len(data)} bytes, format={document_format}")

    if document_format == 'application/pdf':
        logger.info("Using existing PDF file")
        return data, document_format
    if document_format.startswith('image/'):
        return decode_image(data), document_format
    raise ConversionError(f"Unsupported input format for {path.name}")
