"""Error kinds raised by the segmentation engine.

Every engine failure derives from SegmentationError so outer surfaces can
catch one type. An empty scan is not an error: queries that find no
superpixels return an empty list.
"""

from __future__ import annotations


class SegmentationError(Exception):
    """Base class for all engine failures."""


class ParseError(SegmentationError, ValueError):
    """Label raster is empty or malformed (zero dimension, wrong rank or dtype)."""


class OverlapViolation(SegmentationError):
    """Two regions claimed the same composite pixel.

    Signals a containment or masking defect upstream. Never resolved by
    picking a winner.
    """

    def __init__(self, x: int, y: int, existing_tag: int, incoming_tag: int) -> None:
        self.x = x
        self.y = y
        self.existing_tag = existing_tag
        self.incoming_tag = incoming_tag
        super().__init__(
            f"pixel ({x}, {y}) already holds tag {existing_tag}, "
            f"attempted write of tag {incoming_tag}"
        )


class StageFailed(SegmentationError):
    """A pipeline stage failed; the pipeline was aborted."""

    def __init__(self, stage_id: str, cause: BaseException) -> None:
        self.stage_id = stage_id
        self.cause = cause
        super().__init__(f"stage {stage_id} failed: {cause}")


class ImageLoadError(SegmentationError):
    """Image source could not be decoded."""


class ImageTooLarge(ImageLoadError):
    """Image dimensions exceed the allowed pixel count; nothing was decoded."""
