#!/usr/bin/env python3
"""
Demo script showing terrain tile generation at different roughness values.
"""

import numpy as np
import matplotlib.pyplot as plt
from py_dsterrain.core import Band, TileRequest, build_heightmap, generate_tile, squash
from py_dsterrain.core.color_mapper import classify_bands
from py_dsterrain.utils import SeedSource


def main():
    """Demonstrate tile generation."""
    print("Diamond-Square Tile Demo")
    print("=" * 40)

    seed = SeedSource.from_seed(2024).next_seed()
    size_exponent = 8
    print(f"\nSeed: {seed}")

    roughness_values = [1.0, 2.0, 4.0, 6.0]

    plt.figure(figsize=(16, 16))

    for i, roughness in enumerate(roughness_values, 1):
        request = TileRequest.from_exponent((0, 0), seed, roughness, size_exponent)
        print(f"\nRoughness {roughness} ({request.image_size}x{request.image_size})...")

        heightmap = build_heightmap(request)
        bands = classify_bands(squash(heightmap.values))

        print(f"  Elevation range: {heightmap.values.min():.2f} to {heightmap.values.max():.2f}")
        for band in Band:
            pct = np.sum(bands == band) / bands.size * 100
            print(f"  {band.name.lower():<9} {pct:5.1f}%")

        # Rows of the buffer run along x
        pixels = np.frombuffer(generate_tile(request), dtype=np.uint8)
        image = pixels.reshape(request.image_size, request.image_size, 4)

        plt.subplot(2, 2, i)
        plt.imshow(image, interpolation="nearest")
        plt.title(f"Roughness {roughness}")
        plt.axis("off")

    plt.tight_layout()
    plt.savefig("tile_demo.png", dpi=100)
    print("\nSaved visualization to tile_demo.png")


if __name__ == "__main__":
    main()
