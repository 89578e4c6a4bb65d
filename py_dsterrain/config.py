"""Configuration management."""

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings pulled from environment variables."""

    # API Configuration
    api_host: str = Field(default="0.0.0.0", description="API host")
    api_port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Logging format (plain or json)")

    # Control panel defaults
    default_roughness: float = Field(default=2.0, ge=1.0, le=6.0, description="Initial roughness slider value")
    default_size_exponent: int = Field(default=6, ge=4, le=10, description="Initial size exponent slider value")

    # Tile shown at startup
    initial_seed: int = Field(default=0, description="Seed of the startup tile")
    initial_roughness: float = Field(default=2.0, gt=0, description="Roughness of the startup tile")
    initial_tile_size: int = Field(default=2**9 + 1, description="Image size of the startup tile")

    # Generation limits
    max_image_size: int = Field(default=2**10 + 1, description="Largest image size accepted by the API")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
