"""
Process settings, all env-driven.
User-editable layout options live in role_layout.layout_config; these are the knobs
an operator sets once per process.
"""
from __future__ import annotations

import os


class Settings:
    """Settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "role-layout")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "0.1.0")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Seconds between re-issued inspection requests for still-pending members.
    INSPECT_RETRY_INTERVAL: float = float(os.getenv("INSPECT_RETRY_INTERVAL", "0.25"))

    UNITS_PER_COLUMN: int = int(os.getenv("UNITS_PER_COLUMN", "5"))
    # Group size assumed outside instances.
    GLOBAL_RAID_CAP: int = int(os.getenv("GLOBAL_RAID_CAP", "40"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")


settings = Settings()
