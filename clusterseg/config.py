"""Application configuration from environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    clusterseg_env: str = "development"
    clusterseg_log_level: str = "info"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Uploads larger than this many pixels are rejected before decoding.
    # The SRM pass runs a Python union-find: about 20 s per megapixel.
    max_image_pixels: int = 1024 * 1024

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or settings.clusterseg_log_level).upper(), logging.INFO),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
