"""
Diamond-square heightmap generation for terrain tiles.

The builder seeds the four corners of an N x N grid from the tile position,
then refines it level by level with alternating square and diamond passes,
halving the chunk size and the roughness each time. All arithmetic is done in
float32 so a given request always produces the same grid bit for bit.

Only the four corners depend on the tile position. Jitter inside the tile is
hashed from grid-local indices, so neighbouring tiles share their corner
values but not their edges.
"""

import math
import operator
import numpy as np
from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .coordinate_hash import hash_coordinates
from .errors import InvalidSizeError

I32_MIN, I32_MAX = -(2**31), 2**31 - 1
I64_MIN, I64_MAX = -(2**63), 2**63 - 1


def _require_int(value, name: str) -> int:
    """Integer value of ``value``; floats and bools are rejected."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    try:
        return operator.index(value)
    except TypeError:
        raise ValueError(f"{name} must be an integer, got {value!r}") from None


@dataclass(frozen=True)
class TileRequest:
    """Parameters for generating a single terrain tile."""

    position: Tuple[int, int]
    seed: int
    roughness: float
    image_size: int

    def __post_init__(self):
        px, py = self.position
        for value in (px, py):
            value = _require_int(value, "tile coordinate")
            if not I32_MIN <= value <= I32_MAX:
                raise ValueError(f"tile coordinate {value} is outside the 32-bit range")
        seed = _require_int(self.seed, "seed")
        if not I64_MIN <= seed <= I64_MAX:
            raise ValueError(f"seed {seed} is outside the 64-bit range")
        if not (self.roughness > 0 and math.isfinite(self.roughness)):
            raise ValueError(f"roughness must be positive and finite, got {self.roughness}")

    @classmethod
    def from_exponent(
        cls, position: Tuple[int, int], seed: int, roughness: float, exponent: int
    ) -> "TileRequest":
        """Build a request whose image size is 2^exponent + 1."""
        return cls(position=position, seed=seed, roughness=roughness, image_size=2**exponent + 1)


def validate_image_size(image_size: int) -> int:
    """
    Check that a tile size is 2^k + 1 for some k >= 1.

    Returns:
        The size as a plain int

    Raises:
        InvalidSizeError: If the size cannot be halved evenly down to 1
    """
    if isinstance(image_size, bool):
        raise InvalidSizeError(image_size)
    try:
        size = operator.index(image_size)
    except TypeError:
        raise InvalidSizeError(image_size) from None

    span = size - 1
    if span < 2 or span & (span - 1):
        raise InvalidSizeError(image_size)
    return size


class Heightmap:
    """
    Square float32 elevation grid addressed as ``[x, y]``.

    The first axis is x and the second is y, matching the order the builder
    iterates in and the order pixels are emitted in.
    """

    def __init__(self, size: int):
        self.size = size
        self.values = np.zeros((size, size), dtype=np.float32)

    def _check_bounds(self, x: int, y: int) -> None:
        if not (0 <= x < self.size and 0 <= y < self.size):
            raise IndexError(f"cell ({x}, {y}) is outside a {self.size}x{self.size} heightmap")

    def __getitem__(self, key: Tuple[int, int]) -> np.float32:
        x, y = key
        self._check_bounds(x, y)
        return self.values[x, y]

    def __setitem__(self, key: Tuple[int, int], value: float) -> None:
        x, y = key
        self._check_bounds(x, y)
        self.values[x, y] = value

    def lattice(self, step: int) -> np.ndarray:
        """Writable view of every ``step``-th cell along both axes."""
        return self.values[::step, ::step]

    def freeze(self) -> None:
        """Make the grid read-only."""
        self.values.flags.writeable = False

    @property
    def frozen(self) -> bool:
        return not self.values.flags.writeable

    def flatten(self) -> np.ndarray:
        """Cells in storage order, x outer and y inner."""
        return self.values.ravel()


class BuilderState(Enum):
    SEEDING = "seeding"
    REFINING = "refining"
    DONE = "done"


class HeightmapBuilder:
    """
    Runs the diamond-square refinement for one tile request.

    The builder moves through SEEDING, REFINING and DONE. ``build()`` runs it
    to completion; the individual passes are public so intermediate grids can
    be inspected.
    """

    def __init__(self, request: TileRequest):
        """
        Initialize the builder.

        Args:
            request: Tile to generate

        Raises:
            InvalidSizeError: If ``request.image_size`` is not 2^k + 1
        """
        # Size is checked before the grid is allocated
        size = validate_image_size(request.image_size)

        self.request = request
        self.seed = request.seed
        self.heightmap = Heightmap(size)
        self.chunk_size = size - 1
        self.roughness = np.float32(request.roughness)
        self.state = BuilderState.SEEDING

    @property
    def size(self) -> int:
        return self.heightmap.size

    def _jitter(self, xs: np.ndarray, ys: np.ndarray) -> np.ndarray:
        """Signed jitter in [-roughness, roughness) for grid-local cells."""
        unit = hash_coordinates(self.seed, xs, ys) * np.float32(2.0) - np.float32(1.0)
        return unit * self.roughness

    def seed_corners(self) -> None:
        """Set the four corner elevations from the tile position."""
        if self.state is not BuilderState.SEEDING:
            raise RuntimeError(f"corners can only be seeded once (state={self.state.value})")

        px, py = self.request.position
        last = self.size - 1
        top_left, top_right, bottom_left, bottom_right = hash_coordinates(
            self.seed,
            np.array([px, px, px + 1, px + 1]),
            np.array([py, py + 1, py, py + 1]),
        )

        self.heightmap[0, 0] = top_left
        self.heightmap[0, last] = top_right
        self.heightmap[last, 0] = bottom_left
        self.heightmap[last, last] = bottom_right

        self.state = BuilderState.REFINING

    def square_pass(self) -> None:
        """
        Fill chunk centres with the mean of their four corners.

        Jitter for the level is added to each chunk's top-left corner, not to
        the new centre. Every corner is read before any of them is jittered,
        so the whole lattice can be processed at once.
        """
        self._require_refining()
        grid = self.heightmap.values
        chunk = self.chunk_size
        half = chunk // 2
        end = self.size - 1

        top_left = grid[0:end:chunk, 0:end:chunk]
        top_right = grid[chunk::chunk, 0:end:chunk]
        bottom_left = grid[0:end:chunk, chunk::chunk]
        bottom_right = grid[chunk::chunk, chunk::chunk]

        grid[half::chunk, half::chunk] = (
            top_left + top_right + bottom_left + bottom_right
        ) / np.float32(4.0)

        origins = np.arange(0, end, chunk)
        top_left += self._jitter(origins[:, None], origins[None, :])

    def diamond_pass(self) -> None:
        """
        Fill edge midpoints from their in-bounds cardinal neighbours.

        On the lattice spaced ``half`` apart, diamond cells are those whose
        lattice coordinates sum to an odd number. Their neighbours all lie on
        the square lattice, so reads and writes never overlap.
        """
        self._require_refining()
        half = self.chunk_size // 2
        lattice = self.heightmap.lattice(half)
        cells = lattice.shape[0]

        total = np.zeros_like(lattice)
        count = np.zeros(lattice.shape, dtype=np.int32)

        # left, up, right, down
        total[1:, :] += lattice[:-1, :]
        count[1:, :] += 1
        total[:, 1:] += lattice[:, :-1]
        count[:, 1:] += 1
        total[:-1, :] += lattice[1:, :]
        count[:-1, :] += 1
        total[:, :-1] += lattice[:, 1:]
        count[:, :-1] += 1

        index = np.arange(cells)
        diamond = (index[:, None] + index[None, :]) % 2 == 1
        xs, ys = np.meshgrid(index * half, index * half, indexing="ij")

        average = total[diamond] / count[diamond].astype(np.float32)
        lattice[diamond] = average + self._jitter(xs[diamond], ys[diamond])

    def refine_level(self) -> None:
        """Run one square and diamond pass, then halve chunk size and roughness."""
        self.square_pass()
        self.diamond_pass()

        self.chunk_size //= 2
        self.roughness = np.float32(self.roughness / np.float32(2.0))
        if self.chunk_size <= 1:
            self.state = BuilderState.DONE

    def build(self) -> Heightmap:
        """
        Run the builder to completion.

        Returns:
            Heightmap: The finished, read-only grid
        """
        if self.state is BuilderState.SEEDING:
            self.seed_corners()
        while self.state is BuilderState.REFINING:
            self.refine_level()

        self.heightmap.freeze()
        return self.heightmap

    def _require_refining(self) -> None:
        if self.state is not BuilderState.REFINING:
            raise RuntimeError(f"refinement requires seeded corners (state={self.state.value})")


def build_heightmap(request: TileRequest) -> Heightmap:
    """Generate the finished heightmap for a tile request."""
    return HeightmapBuilder(request).build()
