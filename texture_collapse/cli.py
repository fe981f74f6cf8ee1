"""Command line driver for texture-collapse.

Usage:
    python -m texture_collapse.cli stats       <sample>               [--kernel 3x3]
    python -m texture_collapse.cli synthesize  <sample> -o <out.png>  [--grid 32x32] [--seed 7]

Subcommands:
  stats       Learn the palette and neighbourhood statistics and log a summary
  synthesize  Learn from the sample, collapse a fresh grid, save a preview
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np
from PIL import Image

from .config import SynthesisConfig, parse_shape
from .engine import CollapseEngine, Neighbourhood, QueueOrder
from .grid import ProbabilityGrid
from .learner import learn_statistics
from .preview import save_preview

logger = logging.getLogger("texture_collapse")


def _setup_logging(debug: bool = False):
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _load_sample(path: Path, keep_alpha: bool) -> np.ndarray:
    with Image.open(path) as img:
        return np.asarray(img.convert("RGBA" if keep_alpha else "RGB"))


def _config_from_args(args) -> SynthesisConfig:
    cfg = SynthesisConfig.from_json(args.config) if args.config else SynthesisConfig()
    overrides = {
        "kernel_shape": args.kernel,
        "keep_alpha": args.keep_alpha or None,
        "grid_shape": getattr(args, "grid", None),
        "seed": getattr(args, "seed", None),
        "queue_order": getattr(args, "order", None),
        "neighbourhood": getattr(args, "neighbourhood", None),
        "max_steps": getattr(args, "steps", None),
        "reseed": False if getattr(args, "no_reseed", False) else None,
        "scale": getattr(args, "scale", None),
        "grid_lines": getattr(args, "grid_lines", False) or None,
    }
    for key, value in overrides.items():
        if value is not None:
            setattr(cfg, key, value)
    return cfg.validate()


# ---- Subcommand: stats ----

def cmd_stats(args):
    cfg = _config_from_args(args)
    sample = _load_sample(Path(args.sample), cfg.keep_alpha)
    stats = learn_statistics(sample, kernel_shape=cfg.kernel_shape)

    summary = stats.summary()
    logger.info("Sample: %s (%dx%d)", args.sample, sample.shape[1], sample.shape[0])
    logger.info("Palette: %d colours", summary["colours"])
    for index, colour in enumerate(stats.palette.colours):
        logger.info(
            "  [%d] %s prior=%.4f kernels=%d",
            index, colour, summary["priors"][index], summary["distinct_kernels"][index],
        )
    if args.json:
        print(json.dumps(summary, indent=2))
    return 0


# ---- Subcommand: synthesize ----

def cmd_synthesize(args):
    cfg = _config_from_args(args)
    sample = _load_sample(Path(args.sample), cfg.keep_alpha)
    stats = learn_statistics(sample, kernel_shape=cfg.kernel_shape)

    grid = ProbabilityGrid.initialise(cfg.grid_shape, stats.priors)
    engine = CollapseEngine(
        grid,
        stats,
        queue_order=cfg.queue_order,
        neighbourhood=cfg.neighbourhood,
        seed=cfg.seed,
    )
    collapsed = engine.run(max_steps=cfg.max_steps, reseed=cfg.reseed)

    output = save_preview(grid, stats.palette, Path(args.output), cfg.scale, cfg.grid_lines)
    logger.info(
        "Collapsed %d cells (%d/%d) -> %s",
        collapsed, grid.collapsed_count, grid.width * grid.height, output,
    )
    return 0


# ---- Argument parser ----

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="texture-collapse",
        description="Learn a colour texture from a sample and collapse a new grid from it.",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("sample", help="Sample image to learn from")
    common.add_argument("--config", default=None, help="Synthesis config JSON file")
    common.add_argument("--kernel", type=parse_shape, default=None,
                        help="Neighbourhood window WxH, both odd (default: 3x3)")
    common.add_argument("--keep-alpha", action="store_true",
                        help="Treat alpha as part of each colour")

    # -- stats --
    p_stats = sub.add_parser("stats", parents=[common], help="Summarise learned statistics")
    p_stats.add_argument("--json", action="store_true", help="Also print the summary as JSON")
    p_stats.set_defaults(func=cmd_stats)

    # -- synthesize --
    p_syn = sub.add_parser("synthesize", parents=[common], help="Collapse a new grid")
    p_syn.add_argument("-o", "--output", required=True, help="Output preview image")
    p_syn.add_argument("--grid", type=parse_shape, default=None,
                       help="Output grid WxH (default: 32x32)")
    p_syn.add_argument("--seed", type=int, default=None, help="Random seed")
    p_syn.add_argument("--steps", type=int, default=None,
                       help="Stop after this many collapses (default: all cells)")
    p_syn.add_argument("--no-reseed", action="store_true",
                       help="Stop when the candidate queue empties instead of reseeding")
    p_syn.add_argument("--order", choices=[o.value for o in QueueOrder], default=None,
                       help="Which candidates dequeue first (default: lowest_peak)")
    p_syn.add_argument("--neighbourhood", choices=[n.value for n in Neighbourhood], default=None,
                       help="Cells requeued after a collapse (default: forward)")
    p_syn.add_argument("--scale", type=int, default=None,
                       help="Preview magnification per cell (default: 8)")
    p_syn.add_argument("--grid-lines", action="store_true", help="Draw cell borders")
    p_syn.set_defaults(func=cmd_synthesize)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _setup_logging(args.debug)
    try:
        return args.func(args)
    except (ValueError, OSError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
