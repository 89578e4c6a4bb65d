"""
Tests for diamond-square heightmap generation.
"""

import numpy as np
import pytest

from py_dsterrain.core.coordinate_hash import coordinate_hash
from py_dsterrain.core.errors import InvalidSizeError, TerrainError
from py_dsterrain.core.heightmap_builder import (
    BuilderState,
    Heightmap,
    HeightmapBuilder,
    TileRequest,
    build_heightmap,
    validate_image_size,
)


def make_request(image_size=17, seed=0, position=(0, 0), roughness=2.0):
    return TileRequest(position=position, seed=seed, roughness=roughness, image_size=image_size)


class TestTileRequest:
    """Test request validation."""

    def test_from_exponent(self):
        request = TileRequest.from_exponent((1, 2), 9, 3.0, 6)
        assert request.image_size == 65
        assert request.position == (1, 2)

    @pytest.mark.parametrize("roughness", [0.0, -1.0, float("nan"), float("inf")])
    def test_rejects_bad_roughness(self, roughness):
        with pytest.raises(ValueError):
            make_request(roughness=roughness)

    @pytest.mark.parametrize("seed", [1.5, 2.0, "7", True])
    def test_rejects_non_integer_seed(self, seed):
        with pytest.raises(ValueError):
            make_request(seed=seed)

    @pytest.mark.parametrize("position", [(0.5, 0), (0, 1.0), (False, 0)])
    def test_rejects_non_integer_position(self, position):
        with pytest.raises(ValueError):
            make_request(position=position)

    def test_accepts_numpy_integers(self):
        request = make_request(seed=np.int64(-5), position=(np.int32(3), np.int32(4)))
        assert len(build_heightmap(request).flatten()) == 17 * 17

    def test_rejects_out_of_range_position(self):
        with pytest.raises(ValueError):
            make_request(position=(2**31, 0))

    def test_rejects_out_of_range_seed(self):
        with pytest.raises(ValueError):
            make_request(seed=2**63)


class TestSizeValidation:
    """Test image size validation."""

    @pytest.mark.parametrize("size", [3, 5, 9, 17, 33, 257, 1025])
    def test_valid_sizes(self, size):
        assert validate_image_size(size) == size

    @pytest.mark.parametrize("size", [-1, 0, 1, 2, 4, 6, 7, 10, 100, 256, 258])
    def test_invalid_sizes(self, size):
        with pytest.raises(InvalidSizeError) as exc_info:
            validate_image_size(size)
        assert exc_info.value.image_size == size

    def test_rejects_non_integers(self):
        with pytest.raises(InvalidSizeError):
            validate_image_size(9.0)
        with pytest.raises(InvalidSizeError):
            validate_image_size(True)

    def test_error_hierarchy(self):
        """InvalidSizeError is both a TerrainError and a ValueError."""
        assert issubclass(InvalidSizeError, TerrainError)
        assert issubclass(InvalidSizeError, ValueError)

    def test_builder_rejects_before_allocating(self):
        with pytest.raises(InvalidSizeError):
            HeightmapBuilder(make_request(image_size=6))


class TestHeightmap:
    """Test the owned elevation grid."""

    def test_zero_filled(self):
        heightmap = Heightmap(5)
        assert heightmap.values.shape == (5, 5)
        assert heightmap.values.dtype == np.float32
        assert np.all(heightmap.values == 0)

    def test_bounds_checked(self):
        heightmap = Heightmap(3)
        with pytest.raises(IndexError):
            heightmap[3, 0]
        with pytest.raises(IndexError):
            heightmap[0, -1] = 1.0

    def test_x_is_outer_axis(self):
        heightmap = Heightmap(3)
        heightmap[2, 0] = 1.5
        assert heightmap.values[2, 0] == np.float32(1.5)
        assert heightmap.flatten()[6] == np.float32(1.5)

    def test_freeze(self):
        heightmap = Heightmap(3)
        heightmap.freeze()
        assert heightmap.frozen
        with pytest.raises(ValueError):
            heightmap.values[1, 1] = 2.0


class TestCornerSeeding:
    """Test the seeding state."""

    def test_corners_from_position(self):
        seed, (px, py) = 77, (3, -4)
        builder = HeightmapBuilder(make_request(image_size=9, seed=seed, position=(px, py)))
        builder.seed_corners()
        grid = builder.heightmap.values

        assert grid[0, 0] == coordinate_hash(seed, px, py)
        assert grid[0, 8] == coordinate_hash(seed, px, py + 1)
        assert grid[8, 0] == coordinate_hash(seed, px + 1, py)
        assert grid[8, 8] == coordinate_hash(seed, px + 1, py + 1)
        assert builder.state is BuilderState.REFINING

        # Nothing but the corners is touched
        interior = grid.copy()
        interior[[0, 0, 8, 8], [0, 8, 0, 8]] = 0
        assert np.all(interior == 0)

    def test_adjacent_tiles_share_corners(self):
        """Tiles next to each other seed matching corner values."""
        left = HeightmapBuilder(make_request(image_size=9, seed=5, position=(0, 0)))
        right = HeightmapBuilder(make_request(image_size=9, seed=5, position=(1, 0)))
        left.seed_corners()
        right.seed_corners()

        assert left.heightmap[8, 0] == right.heightmap[0, 0]
        assert left.heightmap[8, 8] == right.heightmap[0, 8]

    def test_seed_twice_fails(self):
        builder = HeightmapBuilder(make_request())
        builder.seed_corners()
        with pytest.raises(RuntimeError):
            builder.seed_corners()

    def test_refine_requires_seeding(self):
        builder = HeightmapBuilder(make_request())
        with pytest.raises(RuntimeError):
            builder.square_pass()


class TestSquarePass:
    """Test the square pass."""

    def test_first_square_pass(self):
        """Centre gets the corner mean; only the top-left corner is jittered."""
        seed, roughness = 31, 3.0
        builder = HeightmapBuilder(make_request(image_size=9, seed=seed, roughness=roughness))
        builder.seed_corners()
        seeded = builder.heightmap.values.copy()

        builder.square_pass()
        grid = builder.heightmap.values

        average = (seeded[0, 0] + seeded[8, 0] + seeded[0, 8] + seeded[8, 8]) / np.float32(4.0)
        assert grid[4, 4] == average

        jitter = (coordinate_hash(seed, 0, 0) * np.float32(2.0) - np.float32(1.0)) * np.float32(roughness)
        assert grid[0, 0] == seeded[0, 0] + jitter
        assert grid[0, 8] == seeded[0, 8]
        assert grid[8, 0] == seeded[8, 0]
        assert grid[8, 8] == seeded[8, 8]

    def test_centre_is_not_jittered(self):
        builder = HeightmapBuilder(make_request(image_size=5, seed=8, roughness=6.0))
        builder.seed_corners()
        seeded = builder.heightmap.values.copy()
        builder.square_pass()

        corners = [seeded[0, 0], seeded[4, 0], seeded[0, 4], seeded[4, 4]]
        assert builder.heightmap[2, 2] == (corners[0] + corners[1] + corners[2] + corners[3]) / np.float32(4.0)


class TestRefinement:
    """Test the refinement loop."""

    def test_chunk_and_roughness_halve(self):
        builder = HeightmapBuilder(make_request(image_size=33, roughness=4.0))
        builder.seed_corners()

        builder.refine_level()
        assert builder.chunk_size == 16
        assert builder.roughness == np.float32(2.0)

        builder.refine_level()
        assert builder.chunk_size == 8
        assert builder.roughness == np.float32(1.0)

    def test_levels_until_done(self):
        builder = HeightmapBuilder(make_request(image_size=65))
        builder.seed_corners()

        levels = 0
        while builder.state is BuilderState.REFINING:
            builder.refine_level()
            levels += 1

        assert levels == 6
        assert builder.chunk_size == 1

    def test_build_returns_frozen_grid(self):
        heightmap = build_heightmap(make_request(image_size=17))
        assert heightmap.size == 17
        assert heightmap.frozen
        assert np.all(np.isfinite(heightmap.values))

    def test_deterministic(self):
        first = build_heightmap(make_request(image_size=65, seed=123, position=(4, 9), roughness=3.5))
        second = build_heightmap(make_request(image_size=65, seed=123, position=(4, 9), roughness=3.5))
        np.testing.assert_array_equal(first.values, second.values)

    def test_seed_changes_grid(self):
        first = build_heightmap(make_request(image_size=33, seed=1))
        second = build_heightmap(make_request(image_size=33, seed=2))
        assert not np.array_equal(first.values, second.values)

    def test_values_can_leave_hash_range(self):
        """Accumulated jitter is not clamped."""
        heightmap = build_heightmap(make_request(image_size=129, seed=9, roughness=6.0))
        assert heightmap.values.min() < 0.0 or heightmap.values.max() >= 1.0


class TestWorkedExample:
    """Single-level 3x3 tile reproduced step by step in float32."""

    def test_three_by_three(self):
        seed, roughness = 0, np.float32(2.0)
        h = lambda x, y: coordinate_hash(seed, x, y)
        jitter = lambda x, y: (h(x, y) * np.float32(2.0) - np.float32(1.0)) * roughness

        g00, g02, g20, g22 = h(0, 0), h(0, 1), h(1, 0), h(1, 1)

        # Square pass
        g11 = (g00 + g20 + g02 + g22) / np.float32(4.0)
        g00 = g00 + jitter(0, 0)

        # Diamond pass: each edge midpoint has three in-bounds neighbours
        three = np.float32(3.0)
        g10 = (g00 + g20 + g11) / three + jitter(1, 0)
        g01 = (g00 + g11 + g02) / three + jitter(0, 1)
        g21 = (g11 + g20 + g22) / three + jitter(2, 1)
        g12 = (g02 + g11 + g22) / three + jitter(1, 2)

        expected = np.array(
            [
                [g00, g01, g02],
                [g10, g11, g12],
                [g20, g21, g22],
            ],
            dtype=np.float32,
        )

        builder = HeightmapBuilder(make_request(image_size=3, seed=seed, roughness=2.0))
        heightmap = builder.build()

        np.testing.assert_array_equal(heightmap.values, expected)
        assert builder.state is BuilderState.DONE
        assert builder.chunk_size == 1

    def test_three_by_three_reference_bits(self):
        """Grid matches fixed float32 bit patterns, x outer and y inner."""
        reference = np.array(
            [3215304102, 3210841143, 1051240617,
             1059738881, 1052556477, 3188668898,
             1060089776, 3216729617, 1050845859],
            dtype=np.uint32,
        )
        heightmap = build_heightmap(make_request(image_size=3, seed=0, roughness=2.0))

        np.testing.assert_array_equal(heightmap.values.ravel().view(np.uint32), reference)
