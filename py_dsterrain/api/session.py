"""
Control panel state for the tile viewer.

A TileSession holds the slider values, the displayed seed and the tile that is
currently on screen. Each generate action retires the previous tile before
submitting exactly one new request.
"""

import threading
import structlog
from dataclasses import dataclass
from pydantic import BaseModel, Field
from typing import Optional

from ..config import Settings, settings as default_settings
from ..core.errors import TerrainError
from ..core.heightmap_builder import TileRequest
from ..core.tile_generator import TilePlacement, generate_tile
from ..utils.random import SeedSource

logger = structlog.get_logger()

ORIGIN = (0, 0)


class TerrainControls(BaseModel):
    """Bounded slider values from the settings panel."""

    roughness: float = Field(2.0, ge=1.0, le=6.0, description="Initial jitter amplitude")
    size_exponent: int = Field(6, ge=4, le=10, description="Tile size is 2^size_exponent + 1")

    @property
    def image_size(self) -> int:
        return 2**self.size_exponent + 1


@dataclass(frozen=True)
class DisplayedTile:
    """A generated tile and where it is shown."""

    request: TileRequest
    pixels: bytes
    placement: TilePlacement

    @property
    def width(self) -> int:
        return self.request.image_size

    @property
    def height(self) -> int:
        return self.request.image_size


class TileSession:
    """Viewer state: controls, displayed seed and the current tile."""

    def __init__(self, config: Optional[Settings] = None, seed_source: Optional[SeedSource] = None):
        self.config = config or default_settings
        self.seed_source = seed_source or SeedSource()
        self.controls = TerrainControls(
            roughness=self.config.default_roughness,
            size_exponent=self.config.default_size_exponent,
        )
        self.seed = self.config.initial_seed
        self.current_tile: Optional[DisplayedTile] = None
        self._lock = threading.Lock()

    def update_controls(
        self, roughness: Optional[float] = None, size_exponent: Optional[int] = None
    ) -> TerrainControls:
        """Change slider values; unspecified values are kept."""
        with self._lock:
            values = self.controls.dict()
            if roughness is not None:
                values["roughness"] = roughness
            if size_exponent is not None:
                values["size_exponent"] = size_exponent
            self.controls = TerrainControls(**values)
            return self.controls

    def show_initial_tile(self) -> DisplayedTile:
        """Display the startup tile at the origin."""
        request = TileRequest(
            position=ORIGIN,
            seed=self.config.initial_seed,
            roughness=self.config.initial_roughness,
            image_size=self.config.initial_tile_size,
        )
        with self._lock:
            self._retire_current()
            return self._display(request)

    def generate(self) -> DisplayedTile:
        """
        Replace the displayed tile with a newly seeded one.

        Returns:
            DisplayedTile: The tile now on screen

        Raises:
            TerrainError: If the request is rejected; nothing is displayed
        """
        with self._lock:
            self._retire_current()
            self.seed = self.seed_source.next_seed()
            request = TileRequest(
                position=ORIGIN,
                seed=self.seed,
                roughness=self.controls.roughness,
                image_size=self.controls.image_size,
            )
            return self._display(request)

    def _retire_current(self) -> None:
        if self.current_tile is not None:
            logger.info("Retiring tile", position=self.current_tile.request.position,
                        seed=self.current_tile.request.seed)
            self.current_tile = None

    def _display(self, request: TileRequest) -> DisplayedTile:
        try:
            pixels = generate_tile(request)
        except TerrainError as e:
            logger.warning("Tile request rejected, no tile produced", error=str(e))
            raise

        tile = DisplayedTile(
            request=request,
            pixels=pixels,
            placement=TilePlacement.for_position(request.position),
        )
        self.current_tile = tile
        logger.info("Tile displayed", position=request.position, seed=request.seed,
                    image_size=request.image_size)
        return tile
