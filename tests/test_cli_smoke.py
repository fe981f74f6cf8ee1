"""
Smoke tests for the command line driver and its configuration layer.

The goal is to exercise learn -> initialise -> collapse -> preview on a tiny
synthetic sample so regressions in wiring or file layout are caught early.
"""

from __future__ import annotations

import json
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from texture_collapse.cli import main as cli_main
from texture_collapse.config import SynthesisConfig, parse_shape
from texture_collapse.engine import Neighbourhood, QueueOrder
from texture_collapse.errors import InvalidKernelShape
from texture_collapse.grid import ProbabilityGrid
from texture_collapse.palette import Palette
from texture_collapse.preview import render_distribution

COLORS = [
    (32, 48, 112),
    (240, 200, 96),
    (20, 20, 24),
]


def _save_stripes(path: Path, size: int = 12, block: int = 2) -> None:
    """Create a small RGB sample with diagonal colour stripes."""
    pixels = np.zeros((size, size, 3), dtype=np.uint8)
    for y in range(size):
        for x in range(size):
            pixels[y, x] = COLORS[((x // block) + (y // block)) % len(COLORS)]
    Image.fromarray(pixels).save(path)


def test_cli_synthesize(tmp_path):
    source = tmp_path / "sample.png"
    _save_stripes(source)
    output = tmp_path / "out" / "collapsed.png"

    code = cli_main(
        [
            "synthesize",
            str(source),
            "-o",
            str(output),
            "--grid",
            "6x5",
            "--seed",
            "3",
            "--scale",
            "4",
        ]
    )

    assert code == 0
    assert output.exists(), "CLI did not write the preview"
    with Image.open(output) as img:
        assert img.size == (24, 20)
        colours = {tuple(c) for c in np.asarray(img.convert("RGB")).reshape(-1, 3).tolist()}
    # a fully collapsed grid only shows sample colours
    assert colours <= set(COLORS)


def test_cli_stats_json(tmp_path, capsys):
    source = tmp_path / "sample.png"
    _save_stripes(source)

    assert cli_main(["stats", str(source), "--kernel", "3", "--json"]) == 0
    summary = json.loads(capsys.readouterr().out)
    assert summary["colours"] == 3
    assert sum(summary["priors"]) == pytest.approx(1.0, abs=1e-5)


def test_cli_rejects_even_kernel(tmp_path):
    source = tmp_path / "sample.png"
    _save_stripes(source)
    assert cli_main(["stats", str(source), "--kernel", "2x2"]) == 1


@pytest.mark.parametrize(
    "extra",
    [["--grid", "0x3"], ["--scale", "0"], ["--steps", "-1"]],
)
def test_cli_bad_values_exit_cleanly(tmp_path, extra):
    source = tmp_path / "sample.png"
    _save_stripes(source)
    output = tmp_path / "out.png"
    assert cli_main(["synthesize", str(source), "-o", str(output)] + extra) == 1
    assert not output.exists()


def test_cli_malformed_config(tmp_path):
    source = tmp_path / "sample.png"
    _save_stripes(source)
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json")
    assert cli_main(["stats", str(source), "--config", str(config_path)]) == 1


def test_cli_config_file(tmp_path):
    source = tmp_path / "sample.png"
    _save_stripes(source)
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"grid_shape": [3, 3], "scale": 2, "max_steps": 4}))
    output = tmp_path / "partial.png"

    assert cli_main(["synthesize", str(source), "-o", str(output), "--config", str(config_path)]) == 0
    with Image.open(output) as img:
        assert img.size == (6, 6)


class TestConfig:
    def test_parse_shape(self):
        assert parse_shape("32x24") == (32, 24)
        assert parse_shape("16") == (16, 16)
        assert parse_shape(5) == (5, 5)
        assert parse_shape([3, 1]) == (3, 1)
        with pytest.raises(ValueError):
            parse_shape("1x2x3")

    def test_from_dict(self):
        cfg = SynthesisConfig.from_dict(
            {"kernel_shape": "5x3", "queue_order": "highest_peak", "neighbourhood": "window", "unknown": 1}
        )
        assert cfg.kernel_shape == (5, 3)
        assert cfg.queue_order is QueueOrder.HIGHEST_PEAK_FIRST
        assert cfg.neighbourhood is Neighbourhood.WINDOW
        assert cfg.to_dict()["kernel_shape"] == [5, 3]

    def test_even_kernel_rejected(self):
        with pytest.raises(InvalidKernelShape):
            SynthesisConfig(kernel_shape=(4, 3)).validate()


class TestPreview:
    def test_render_shape_and_grid_lines(self):
        palette = Palette(((0, 0, 0), (255, 255, 255)))
        grid = ProbabilityGrid.initialise((3, 2), [0.0, 1.0])
        img = render_distribution(grid, palette, scale=4, grid_lines=True)
        assert img.shape == (8, 12, 3)
        assert img.dtype == np.uint8
        assert tuple(img[0, 0]) == (255, 0, 0)
        assert tuple(img[1, 1]) == (255, 255, 255)

    def test_render_grayscale(self):
        palette = Palette(((0,), (200,)))
        grid = ProbabilityGrid.initialise((2, 2), [0.5, 0.5])
        img = render_distribution(grid, palette, scale=2)
        assert img.shape == (4, 4)
        assert img[0, 0] == 100
