"""
Convert heightmaps into RGBA8 pixel buffers.

Each elevation is squashed into (0, 1) with the logistic function, quantized
to a byte and coloured by the band the squashed value falls in.
"""

import numpy as np
from enum import IntEnum
from typing import Union

from .heightmap_builder import Heightmap

ALPHA = 255

# Inclusive lower bounds of LOWLAND, HIGHLAND and PEAK
BAND_THRESHOLDS = np.array([0.20, 0.65, 0.90])


class Band(IntEnum):
    """Colour bands, lowest first."""

    WATER = 0  # blue channel only
    LOWLAND = 1  # green channel only
    HIGHLAND = 2  # grey at half intensity
    PEAK = 3  # grey at full intensity


def squash(elevations: Union[float, np.ndarray]) -> np.ndarray:
    """Logistic function mapping any real elevation into (0, 1)."""
    values = np.asarray(elevations, dtype=np.float64)
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-values))


def quantize(fractions: Union[float, np.ndarray]) -> np.ndarray:
    """Round fractions to bytes, clamped into [0, 255]."""
    scaled = np.rint(np.asarray(fractions, dtype=np.float64) * 255.0)
    return np.clip(scaled, 0, 255).astype(np.uint8)


def classify_bands(fractions: np.ndarray) -> np.ndarray:
    """Band index for each squashed fraction."""
    return np.digitize(np.asarray(fractions, dtype=np.float64), BAND_THRESHOLDS)


def classify_band(fraction: float) -> Band:
    """Band for a single squashed fraction."""
    return Band(int(classify_bands(np.array([fraction]))[0]))


def elevations_to_rgba(elevations: np.ndarray) -> np.ndarray:
    """
    Colour a flat array of elevations.

    Args:
        elevations: 1-D array of raw elevations

    Returns:
        np.ndarray: (len(elevations), 4) uint8 array of RGBA pixels
    """
    fractions = squash(elevations)
    value = quantize(fractions)
    bands = classify_bands(fractions)

    pixels = np.zeros((value.shape[0], 4), dtype=np.uint8)
    pixels[:, 3] = ALPHA

    water = bands == Band.WATER
    pixels[water, 2] = value[water]

    lowland = bands == Band.LOWLAND
    pixels[lowland, 1] = value[lowland]

    highland = bands == Band.HIGHLAND
    pixels[highland, :3] = (value[highland] // 2)[:, None]

    peak = bands == Band.PEAK
    pixels[peak, :3] = value[peak][:, None]

    return pixels


def map_colors(heightmap: Union[Heightmap, np.ndarray]) -> bytes:
    """
    Encode a heightmap as an RGBA8 pixel buffer.

    Cells are emitted in the heightmap's storage order, x outer and y inner,
    four bytes per cell.
    """
    if isinstance(heightmap, Heightmap):
        elevations = heightmap.flatten()
    else:
        elevations = np.asarray(heightmap).ravel()
    return elevations_to_rgba(elevations).tobytes()
