"""POST /api/segment — run the segmentation pipeline on an uploaded image."""

from __future__ import annotations

import base64
import binascii
import logging
import time
from dataclasses import replace

from fastapi import APIRouter, Depends, HTTPException

from clusterseg.config import Settings
from clusterseg.dependencies import get_settings
from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.errors import ImageLoadError, ImageTooLarge, StageFailed
from clusterseg.engine.pipeline import create_pipeline
from clusterseg.models.requests import SegmentRequest
from clusterseg.models.responses import SegmentResponse
from clusterseg.utils.imageio import encode_tags_png, load_image

logger = logging.getLogger(__name__)

router = APIRouter()


def _pipeline_config(request: SegmentRequest) -> PipelineConfig:
    config = PipelineConfig()
    if request.srm_q is not None:
        config = replace(config, srm_q=request.srm_q)
    if request.merge_identical is not None:
        config = replace(config, merge_identical=request.merge_identical)
    return config


# Plain def: FastAPI runs the CPU-bound pipeline in its threadpool
@router.post("/segment", response_model=SegmentResponse)
def segment(request: SegmentRequest, settings: Settings = Depends(get_settings)) -> SegmentResponse:
    start = time.perf_counter()

    try:
        data = base64.b64decode(request.image_b64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(status_code=422, detail=f"image_b64 is not valid base64: {e}") from e

    try:
        image = load_image(data, max_pixels=settings.max_image_pixels)
    except ImageTooLarge as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except ImageLoadError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    height, width = image.shape[:2]

    ctx = SegmentationContext(image=image)
    try:
        create_pipeline(_pipeline_config(request)).run(ctx)
    except StageFailed as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        png = encode_tags_png(ctx.final_tags)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    acc = ctx.accumulation
    elapsed = (time.perf_counter() - start) * 1000
    logger.info("Segmented %dx%d image in %.0fms", width, height, elapsed)

    return SegmentResponse(
        width=width,
        height=height,
        block_superpixels=int(ctx.block_tags.max()),
        fine_superpixels=len(ctx.fine_graph),
        coarse_superpixels=len(ctx.coarse_graph),
        final_superpixels=len(acc.graph),
        identical_merges=ctx.identical_merges,
        checksum_before=acc.checksum_before,
        checksum_after=acc.checksum_after,
        reparsed=acc.reparsed,
        processing_time_ms=round(elapsed, 1),
        stage_times_ms=ctx.stage_times_ms,
        tags_png_b64=base64.b64encode(png).decode("ascii"),
    )
