"""FastAPI main application."""

import base64
import logging

import structlog
from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import Optional

from ..config import Settings, settings
from ..core.errors import TerrainError
from ..core.heightmap_builder import I32_MAX, I32_MIN, I64_MAX, I64_MIN, TileRequest
from ..core.tile_generator import TilePlacement, generate_tile
from ..utils.random import SeedSource
from .session import DisplayedTile, TerrainControls, TileSession


def configure_logging(config: Settings) -> None:
    """Configure structlog on top of the standard library logger."""
    logging.basicConfig(format="%(message)s", level=config.log_level.upper())

    if config.log_format == "plain":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


# Configure logging
configure_logging(settings)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Diamond-Square Terrain API",
    description="Procedural terrain tiles generated with the diamond-square algorithm",
    version="0.1.0",
    debug=settings.debug,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Viewer state shared by the control panel endpoints
session = TileSession(settings, SeedSource())


def get_session() -> TileSession:
    """Viewer state dependency; tests override it with a seeded session."""
    return session


# Request/Response models
class TileGenerationRequest(BaseModel):
    """Request to generate a single tile."""

    position_x: int = Field(0, ge=I32_MIN, le=I32_MAX, description="Tile grid X coordinate")
    position_y: int = Field(0, ge=I32_MIN, le=I32_MAX, description="Tile grid Y coordinate")
    seed: int = Field(0, ge=I64_MIN, le=I64_MAX, description="Signed 64-bit seed")
    roughness: float = Field(2.0, gt=0, description="Initial jitter amplitude")
    image_size: int = Field(
        2**6 + 1, ge=2, le=settings.max_image_size, description="Tile edge length, must be 2^k + 1"
    )


class PlacementInfo(BaseModel):
    """Unit quad placement of a tile in the scene."""

    x: float
    y: float
    z: float
    width: float
    height: float


class TileResponse(BaseModel):
    """Generated tile with its RGBA8 pixels encoded as base64."""

    position_x: int
    position_y: int
    seed: int
    roughness: float
    width: int
    height: int
    placement: PlacementInfo
    encoding: str = "rgba8"
    pixels: str


class ControlsUpdate(BaseModel):
    """Partial update of the control panel sliders."""

    roughness: Optional[float] = Field(None, ge=1.0, le=6.0, description="Roughness slider")
    size_exponent: Optional[int] = Field(None, ge=4, le=10, description="Size exponent slider")


class ControlsResponse(BaseModel):
    """Current control panel state."""

    seed: int
    roughness: float
    size_exponent: int
    image_size: int
    has_tile: bool


def _placement_info(placement: TilePlacement) -> PlacementInfo:
    return PlacementInfo(
        x=placement.x, y=placement.y, z=placement.z,
        width=placement.width, height=placement.height,
    )


def _tile_response(request: TileRequest, pixels: bytes, placement: TilePlacement) -> TileResponse:
    px, py = request.position
    return TileResponse(
        position_x=px,
        position_y=py,
        seed=request.seed,
        roughness=request.roughness,
        width=request.image_size,
        height=request.image_size,
        placement=_placement_info(placement),
        pixels=base64.b64encode(pixels).decode("ascii"),
    )


def _displayed_response(tile: DisplayedTile) -> TileResponse:
    return _tile_response(tile.request, tile.pixels, tile.placement)


def _controls_response(session: TileSession, controls: TerrainControls) -> ControlsResponse:
    return ControlsResponse(
        seed=session.seed,
        roughness=controls.roughness,
        size_exponent=controls.size_exponent,
        image_size=controls.image_size,
        has_tile=session.current_tile is not None,
    )


# Event handlers
@app.on_event("startup")
async def startup_event():
    """Show the initial tile on startup."""
    logger.info("Starting Diamond-Square Terrain API")
    session.show_initial_tile()
    logger.info("API startup complete")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Shutting down Diamond-Square Terrain API")


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Diamond-Square Terrain API",
        "version": "0.1.0",
        "status": "running",
    }


@app.get("/health")
async def health_check(session: TileSession = Depends(get_session)):
    """Health check endpoint."""
    return {"status": "healthy", "tile_displayed": session.current_tile is not None}


@app.post("/tiles/generate", response_model=TileResponse)
def generate(request: TileGenerationRequest):
    """Generate a tile and return its pixels."""
    logger.info("Tile generation requested", request=request.dict())

    try:
        tile_request = TileRequest(
            position=(request.position_x, request.position_y),
            seed=request.seed,
            roughness=request.roughness,
            image_size=request.image_size,
        )
        pixels = generate_tile(tile_request)
    except (TerrainError, ValueError) as e:
        logger.warning("Tile generation rejected", error=str(e))
        raise HTTPException(status_code=422, detail=f"No tile produced: {e}")

    return _tile_response(tile_request, pixels, TilePlacement.for_position(tile_request.position))


@app.get("/tiles/current", response_model=TileResponse)
async def get_current_tile(session: TileSession = Depends(get_session)):
    """Return the tile currently on screen."""
    tile = session.current_tile
    if tile is None:
        raise HTTPException(status_code=404, detail="No tile displayed")
    return _displayed_response(tile)


@app.get("/controls", response_model=ControlsResponse)
async def get_controls(session: TileSession = Depends(get_session)):
    """Return the control panel state."""
    return _controls_response(session, session.controls)


@app.put("/controls", response_model=ControlsResponse)
async def update_controls(update: ControlsUpdate, session: TileSession = Depends(get_session)):
    """Move the roughness and size sliders."""
    controls = session.update_controls(
        roughness=update.roughness, size_exponent=update.size_exponent
    )
    logger.info("Controls updated", roughness=controls.roughness,
                size_exponent=controls.size_exponent)
    return _controls_response(session, controls)


@app.post("/controls/generate", response_model=TileResponse)
def generate_from_controls(session: TileSession = Depends(get_session)):
    """Draw a new seed, retire the current tile and show a new one."""
    try:
        tile = session.generate()
    except TerrainError as e:
        raise HTTPException(status_code=422, detail=f"No tile produced: {e}")
    except Exception as e:
        logger.error("Tile generation failed", error=str(e))
        raise

    return _displayed_response(tile)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
