"""
In-place thumbnail resizing with Pillow.

Vision models work on a fixed input size; sending full-resolution frames
only costs bandwidth and server memory. Thumbnails are scaled to fit a
672x672 box before upload and the originals are overwritten.
"""

import logging
from typing import Iterable

from PIL import Image

logger = logging.getLogger(__name__)

MAX_SIZE = 672


def calculate_new_size(
    width: int,
    height: int,
    max_width: int = MAX_SIZE,
    max_height: int = MAX_SIZE,
) -> tuple[int, int]:
    """
    Size that fits the box while keeping the image ratio.

    The longer side is set to the box size and the other one scaled
    proportionally. Small images are scaled up as well.
    """
    new_width, new_height = max_width, max_height
    if width > height:
        new_height = new_width * height // width
    elif width < height:
        new_width = new_height * width // height
    return new_width, new_height


def resize_image(image_path: str, max_size: int = MAX_SIZE) -> None:
    """
    Resize an image to fit ``max_size`` x ``max_size``, overwriting it.

    Raises:
        OSError: the image can't be read or written
    """
    with Image.open(image_path) as img:
        img.load()
        size = calculate_new_size(img.width, img.height, max_size, max_size)
        resized = img.resize(size, Image.Resampling.LANCZOS)
    resized.save(image_path)


def resize_images(image_paths: Iterable[str], max_size: int = MAX_SIZE) -> int:
    """
    Resize a list of images in place. Returns how many were resized.

    A frame that can't be resized is logged and left as it is.
    """
    resized = 0
    for image_path in image_paths:
        try:
            resize_image(image_path, max_size)
            resized += 1
        except (OSError, ValueError) as e:
            logger.warning(f"Could not resize {image_path}: {e}")
    return resized
