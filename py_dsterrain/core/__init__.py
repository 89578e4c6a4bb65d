"""
Core terrain tile generation functionality.
"""

from .errors import TerrainError, InvalidSizeError
from .coordinate_hash import coordinate_hash, hash_coordinates, coordinate_digest
from .heightmap_builder import (
    TileRequest,
    Heightmap,
    HeightmapBuilder,
    BuilderState,
    build_heightmap,
    validate_image_size,
)
from .color_mapper import Band, classify_band, map_colors, squash, quantize
from .tile_generator import TilePlacement, generate_tile

__all__ = ['TerrainError', 'InvalidSizeError',
           'coordinate_hash', 'hash_coordinates', 'coordinate_digest',
           'TileRequest', 'Heightmap', 'HeightmapBuilder', 'BuilderState',
           'build_heightmap', 'validate_image_size',
           'Band', 'classify_band', 'map_colors', 'squash', 'quantize',
           'TilePlacement', 'generate_tile']
