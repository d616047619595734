"""API response models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str = "0.1.0"
    stages_registered: int = 0


class SegmentResponse(BaseModel):
    width: int
    height: int
    block_superpixels: int = 0
    fine_superpixels: int = 0
    coarse_superpixels: int = 0
    final_superpixels: int = 0
    identical_merges: int = 0
    checksum_before: int = 0
    checksum_after: int = 0
    reparsed: bool = False
    processing_time_ms: float = 0.0
    stage_times_ms: dict[str, float] = Field(default_factory=dict)
    tags_png_b64: str = ""
