"""
Theme Palette Imaging Utilities
Handles image decoding into pixel buffers and encoding buffers to disk.
"""
from pathlib import Path
from typing import Union

import cv2
import numpy as np
from loguru import logger
from PIL import Image, UnidentifiedImageError

from themepalette.config import config
from themepalette.errors import ImageDecodeError, OutputWriteError
from themepalette.services.colors.models import PixelBuffer

PathLike = Union[str, Path]


def read_image(path: PathLike) -> PixelBuffer:
    """
    Decode an image file into an RGB pixel buffer.

    Args:
        path: Path to any raster format Pillow can open

    Returns:
        PixelBuffer with alpha and palette modes flattened to RGB

    Raises:
        ImageDecodeError: If the file is missing, unreadable or corrupt
    """
    path = Path(path)
    try:
        with Image.open(path) as pil_image:
            # Convert to RGB if necessary
            if pil_image.mode != 'RGB':
                pil_image = pil_image.convert('RGB')
            rgb_array = np.array(pil_image)
    except FileNotFoundError:
        raise ImageDecodeError(f"Image not found: {path}")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Failed to decode image {path}: {str(e)}")

    if rgb_array.size == 0:
        raise ImageDecodeError(f"Image has no pixels: {path}")

    buffer = PixelBuffer.from_array(rgb_array)
    logger.info(f"Decoded {path.name}: {buffer.width}×{buffer.height}")
    return buffer


def encode_image(buffer: PixelBuffer, extension: str = ".png") -> bytes:
    """
    Encode a buffer into image file bytes.

    Raises:
        OutputWriteError: If OpenCV cannot encode the buffer
    """
    bgr_array = cv2.cvtColor(buffer.to_array(), cv2.COLOR_RGB2BGR)
    try:
        success, encoded = cv2.imencode(extension, bgr_array)
    except cv2.error as e:
        raise OutputWriteError(f"Failed to encode image as {extension}: {str(e)}")
    if not success:
        raise OutputWriteError(f"Failed to encode image as {extension}")
    return encoded.tobytes()


def write_image(buffer: PixelBuffer, path: PathLike) -> Path:
    """
    Encode a buffer and write it to ``path``.

    The format follows the file extension and must be a lossless one so the
    written colors match the buffer exactly.

    Raises:
        OutputWriteError: On unsupported extensions, encode or write failures
    """
    path = Path(path)
    extension = path.suffix.lower()
    if not config.validate_output_extension(extension):
        raise OutputWriteError(
            f"Unsupported output extension '{extension}'. "
            f"Supported: {', '.join(sorted(config.SUPPORTED_EXTENSIONS))}"
        )

    data = encode_image(buffer, extension)
    try:
        path.write_bytes(data)
    except OSError as e:
        raise OutputWriteError(f"Failed to write {path}: {str(e)}")

    logger.debug(f"Wrote {path} ({buffer.width}×{buffer.height}, {len(data)} bytes)")
    return path

