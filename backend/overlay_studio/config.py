"""
Application configuration settings.
"""

from pathlib import Path
from typing import List
from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # API Settings
    api_v1_prefix: str = "/api/v1"
    debug: bool = False

    # Upload Limits
    max_file_size_mb: int = 25
    allowed_content_types: List[str] = ["image/png", "image/jpeg", "image/webp", "image/bmp"]

    # Overlay Asset
    # Local path or http(s) URL of the fixed decorative overlay
    overlay_asset: str = "assets/overlay.png"
    fetch_timeout_s: float = 15.0

    # ============================================================
    # TRANSFORM BOUNDS
    # ============================================================

    scale_min: float = 0.2
    scale_max: float = 4.0
    opacity_min: float = 0.1
    opacity_max: float = 1.0
    default_opacity: float = 0.95

    # ============================================================
    # GEOMETRY CONSTANTS
    # ============================================================

    # Handle distance (as fraction of the surface's shorter side) that maps to scale=1
    resize_calibration_fraction: float = 0.2

    # Nominal overlay width (as fraction of the destination's shorter side) at scale=1
    overlay_base_fraction: float = 0.32

    # Export
    export_filename: str = "overlay-composite.png"

    # Session Settings
    session_ttl_hours: int = 1

    @model_validator(mode="after")
    def check_bounds(self) -> "Settings":
        if not 0 < self.scale_min <= self.scale_max:
            raise ValueError(
                f"scale bounds must satisfy 0 < min <= max, got [{self.scale_min}, {self.scale_max}]"
            )
        if not 0 < self.opacity_min <= self.opacity_max <= 1:
            raise ValueError(
                f"opacity bounds must lie in (0, 1], got [{self.opacity_min}, {self.opacity_max}]"
            )
        if not self.opacity_min <= self.default_opacity <= self.opacity_max:
            raise ValueError(f"default_opacity {self.default_opacity} is outside the opacity bounds")
        if self.resize_calibration_fraction <= 0 or self.overlay_base_fraction <= 0:
            raise ValueError("geometry fractions must be positive")
        return self

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024

    @property
    def overlay_asset_path(self) -> Path:
        return Path(self.overlay_asset)

    class Config:
        env_prefix = "OVERLAY_STUDIO_"
        env_file = ".env"
        extra = "ignore"


# Global settings instance
settings = Settings()
