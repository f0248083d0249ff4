"""
Image helpers for thumbnails sent to vision models.
"""

from .resizer import MAX_SIZE, calculate_new_size, resize_image, resize_images

__all__ = ["MAX_SIZE", "calculate_new_size", "resize_image", "resize_images"]
