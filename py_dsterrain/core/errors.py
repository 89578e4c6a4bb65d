"""
Exceptions raised by tile generation.
"""


class TerrainError(Exception):
    """Base class for tile generation failures."""


class InvalidSizeError(TerrainError, ValueError):
    """Raised when a tile size is not 2^k + 1 for some k >= 1."""

    def __init__(self, image_size: int):
        self.image_size = image_size
        super().__init__(
            f"image_size must be 2^k + 1 with k >= 1, got {image_size}"
        )
