"""Command line entry: ``python -m clusterseg IMAGE [TAGS_IMAGE]``.

Segments IMAGE and writes the final tag raster as a 24-bit color PNG
(default ``outtags.png``). Nothing is written when a stage fails.
"""

from __future__ import annotations

import argparse
import logging
import sys

from clusterseg.config import configure_logging
from clusterseg.engine.config import PipelineConfig
from clusterseg.engine.context import SegmentationContext
from clusterseg.engine.errors import ImageLoadError, StageFailed
from clusterseg.engine.pipeline import create_pipeline
from clusterseg.utils.imageio import load_image, save_rgb_image, save_tags_image
from clusterseg.utils.tags import static_palette

logger = logging.getLogger("clusterseg")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="clusterseg", description="Clustering segmentation of an image")
    parser.add_argument("image", help="Input image file")
    parser.add_argument("tags_image", nargs="?", default="outtags.png", help="Output tags PNG")
    parser.add_argument("--srm-q", type=float, default=PipelineConfig.srm_q, help="SRM coarseness")
    parser.add_argument("--no-identical-merge", action="store_true", help="Skip the identical-color merge")
    parser.add_argument("--palette-image", default=None, help="Also write the regions in random display colors")
    parser.add_argument("--log-level", default=None, help="Override CLUSTERSEG_LOG_LEVEL")
    args = parser.parse_args(argv)

    configure_logging(args.log_level)

    try:
        image = load_image(args.image)
    except ImageLoadError as e:
        print(f"could not load {args.image}: {e}", file=sys.stderr)
        return 1

    config = PipelineConfig(srm_q=args.srm_q, merge_identical=not args.no_identical_merge)
    ctx = SegmentationContext(image=image)
    try:
        create_pipeline(config).run(ctx)
    except StageFailed as e:
        print(f"segmentation failed: {e}", file=sys.stderr)
        return 1

    try:
        save_tags_image(args.tags_image, ctx.final_tags)
    except ValueError as e:
        print(f"could not write {args.tags_image}: {e}", file=sys.stderr)
        return 1
    logger.info("Wrote %d superpixels to %s", len(ctx.final_graph), args.tags_image)

    if args.palette_image:
        graph = ctx.final_graph
        palette = static_palette(graph.tags(), seed=config.palette_seed)
        save_rgb_image(args.palette_image, graph.render_with_palette(palette))
    return 0


if __name__ == "__main__":
    sys.exit(main())
