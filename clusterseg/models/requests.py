"""API request models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SegmentRequest(BaseModel):
    image_b64: str = Field(..., description="Base64-encoded image file (PNG, JPEG, ...)")
    srm_q: float | None = Field(default=None, gt=0, description="SRM coarseness override")
    merge_identical: bool | None = Field(
        default=None, description="Run the identical-color merge of the fine grid",
    )
