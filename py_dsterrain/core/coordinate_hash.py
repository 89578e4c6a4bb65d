"""
Deterministic coordinate hashing for terrain tiles.

Maps ``(seed, x, y)`` to a stable fraction in ``[0, 1)``. The mixing hash is
SipHash-1-3 with zero keys over the little-endian bytes of the seed (8 bytes),
then ``x`` and ``y`` (4 bytes each), so results are identical across runs,
processes and platforms.

The hash is computed on NumPy ``uint64`` arrays so a whole refinement lattice
can be hashed at once; the scalar form is the one-element case of the same
code path.
"""

import numpy as np
from typing import Union

ArrayLike = Union[int, np.ndarray]

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF

# SipHash initialisation constants ("somepseudorandomlygeneratedbytes")
_V0 = np.uint64(0x736F6D6570736575)
_V1 = np.uint64(0x646F72616E646F6D)
_V2 = np.uint64(0x6C7967656E657261)
_V3 = np.uint64(0x7465646279746573)

# Message is seed (8 bytes) + x (4 bytes) + y (4 bytes)
_MESSAGE_LENGTH = 16
_FINAL_BLOCK = np.uint64(_MESSAGE_LENGTH << 56)
_FF = np.uint64(0xFF)
_SHIFT32 = np.uint64(32)

HASH_MODULUS = 255


def _rotl(v: np.ndarray, bits: int) -> np.ndarray:
    """Rotate 64-bit lanes left."""
    return (v << np.uint64(bits)) | (v >> np.uint64(64 - bits))


def _sip_round(v0, v1, v2, v3):
    v0 = v0 + v1
    v1 = _rotl(v1, 13)
    v1 ^= v0
    v0 = _rotl(v0, 32)
    v2 = v2 + v3
    v3 = _rotl(v3, 16)
    v3 ^= v2
    v0 = v0 + v3
    v3 = _rotl(v3, 21)
    v3 ^= v0
    v2 = v2 + v1
    v1 = _rotl(v1, 17)
    v1 ^= v2
    v2 = _rotl(v2, 32)
    return v0, v1, v2, v3


def _to_u32_lanes(values: ArrayLike) -> np.ndarray:
    """Reinterpret signed 32-bit coordinates as unsigned lanes."""
    return (np.asarray(values, dtype=np.int64) & _MASK32).astype(np.uint64)


def coordinate_digest(seed: int, xs: ArrayLike, ys: ArrayLike) -> np.ndarray:
    """
    Compute raw 64-bit digests for coordinate pairs.

    Args:
        seed: Signed 64-bit seed
        xs: X coordinates (scalar or array, wrapped to 32 bits)
        ys: Y coordinates, broadcast against ``xs``

    Returns:
        np.ndarray of dtype uint64 with the broadcast shape of xs and ys
    """
    x_lanes, y_lanes = np.broadcast_arrays(_to_u32_lanes(xs), _to_u32_lanes(ys))
    shape = x_lanes.shape

    m0 = np.uint64(int(seed) & _MASK64)
    m1 = x_lanes | (y_lanes << _SHIFT32)

    v0 = np.full(shape, _V0, dtype=np.uint64)
    v1 = np.full(shape, _V1, dtype=np.uint64)
    v2 = np.full(shape, _V2, dtype=np.uint64)
    v3 = np.full(shape, _V3, dtype=np.uint64)

    # One compression round per message block
    for block in (m0, m1):
        v3 ^= block
        v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)
        v0 ^= block

    v3 ^= _FINAL_BLOCK
    v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)
    v0 ^= _FINAL_BLOCK

    # Three finalisation rounds
    v2 ^= _FF
    for _ in range(3):
        v0, v1, v2, v3 = _sip_round(v0, v1, v2, v3)

    return v0 ^ v1 ^ v2 ^ v3


def hash_coordinates(seed: int, xs: ArrayLike, ys: ArrayLike) -> np.ndarray:
    """
    Hash coordinate pairs to float32 fractions in [0, 1).

    The digest is reduced modulo 255 and divided by 255, so the output takes
    one of 255 evenly spaced values.
    """
    digest = coordinate_digest(seed, xs, ys)
    reduced = (digest % np.uint64(HASH_MODULUS)).astype(np.float32)
    return reduced / np.float32(HASH_MODULUS)


def coordinate_hash(seed: int, x: int, y: int) -> np.float32:
    """Hash a single coordinate pair to a float32 fraction in [0, 1)."""
    return hash_coordinates(seed, np.array([x]), np.array([y]))[0]
