"""
Tile generation entry point.

``generate_tile`` turns one TileRequest into an RGBA8 buffer. Each call owns
its own grid and buffer, so calls can run concurrently from a thread pool.
"""

import time
import structlog
from dataclasses import dataclass
from typing import Tuple

from .color_mapper import map_colors
from .heightmap_builder import HeightmapBuilder, TileRequest

logger = structlog.get_logger()

BYTES_PER_PIXEL = 4


@dataclass(frozen=True)
class TilePlacement:
    """Unit quad position for a tile in scene coordinates."""

    x: float
    y: float
    z: float = 0.0
    width: float = 1.0
    height: float = 1.0

    @classmethod
    def for_position(cls, position: Tuple[int, int]) -> "TilePlacement":
        px, py = position
        return cls(x=float(px), y=float(py))


def generate_tile(request: TileRequest) -> bytes:
    """
    Generate the pixel buffer for a terrain tile.

    Args:
        request: Tile position, seed, roughness and image size

    Returns:
        bytes: ``image_size ** 2 * 4`` bytes of RGBA8 pixels

    Raises:
        InvalidSizeError: If the image size is not 2^k + 1
    """
    started = time.perf_counter()

    builder = HeightmapBuilder(request)
    heightmap = builder.build()
    pixels = map_colors(heightmap)

    logger.debug(
        "Tile generated",
        position=request.position,
        seed=request.seed,
        roughness=request.roughness,
        image_size=request.image_size,
        elapsed_ms=round((time.perf_counter() - started) * 1000, 2),
    )
    return pixels
