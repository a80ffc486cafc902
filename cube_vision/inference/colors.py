"""
Colour Classification – Lab Averages on a 4×4 Grid
==================================================

The rectified face is converted to CIE L*a*b* (L in 0–100, a green→red,
b blue→yellow) and split into equal blocks by floor division; leftover
rows / columns at the bottom-right are ignored.  A border of 10 % is
trimmed from every block before averaging so that sticker gaps and
interpolation bleed from neighbouring cells do not shift the mean.

The mean is labelled by an ordered rule list – the first rule that
matches wins:

    a < −45                                  → green
    −30 < b < 20                             → white
    a < 0                                    → yellow
    b > 20                                   → red
    L > 40                                   → purple
    20 < L < 45 and 35 < a < 80 and b < −70  → blue
    otherwise                                → other

All comparisons are strict, so a value lying exactly on a boundary
falls through to the next rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import cv2
import numpy as np

from cube_vision.config import ClassifierConfig, ColorRules
from cube_vision.imaging import as_float_image
from cube_vision.inference.grid_utils import (
    BLUE,
    GREEN,
    OTHER,
    PURPLE,
    RED,
    WHITE,
    YELLOW,
    ColorGrid,
)

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridBlock:
    """Inner sampling window of one grid cell (half-open pixel ranges)."""
    row: int
    col: int
    y0: int
    y1: int
    x0: int
    x1: int


# ── Public API ─────────────────────────────────────────────────────────

def classify_colors(
    image: np.ndarray,
    config: ClassifierConfig = ClassifierConfig(),
) -> ColorGrid:
    """Label every grid cell of a rectified RGB float image.

    Returns
    -------
    ColorGrid
        ``grid_size × grid_size`` labels in row-major order, with the
        per-cell mean Lab values attached.
    """
    lab = rgb_to_lab(image)
    blocks = grid_blocks(lab.shape, config.grid_size, config.border_fraction)
    means = block_means(lab, blocks, config.grid_size)

    labels: List[List[str]] = []
    for i in range(config.grid_size):
        row: List[str] = []
        for j in range(config.grid_size):
            L, a, b = means[i, j]
            label = classify_lab(L, a, b, config.rules)
            log.debug("Block (%d, %d): L=%.2f a=%.2f b=%.2f → %s", i, j, L, a, b, label)
            row.append(label)
        labels.append(row)

    return ColorGrid.from_rows(labels, lab_means=means)


def rgb_to_lab(image: np.ndarray) -> np.ndarray:
    """sRGB float image → L*a*b* float image (D65 white point)."""
    return cv2.cvtColor(as_float_image(image), cv2.COLOR_RGB2Lab)


def grid_blocks(shape, grid_size: int = 4, border_fraction: float = 0.1) -> List[GridBlock]:
    """Inner sampling windows for a ``grid_size × grid_size`` partition."""
    rows, cols = shape[:2]
    block_rows = rows // grid_size
    block_cols = cols // grid_size
    if block_rows < 1 or block_cols < 1:
        raise ValueError(
            f"Image of {cols}x{rows} px is too small for a {grid_size}x{grid_size} grid"
        )

    trim_r = int(np.floor(block_rows * border_fraction))
    trim_c = int(np.floor(block_cols * border_fraction))

    return [
        GridBlock(
            row=i,
            col=j,
            y0=i * block_rows + trim_r,
            y1=(i + 1) * block_rows - trim_r,
            x0=j * block_cols + trim_c,
            x1=(j + 1) * block_cols - trim_c,
        )
        for i in range(grid_size)
        for j in range(grid_size)
    ]


def block_means(lab: np.ndarray, blocks: List[GridBlock], grid_size: int = 4) -> np.ndarray:
    """Mean (L, a, b) of every block window, shape ``(grid_size, grid_size, 3)``."""
    means = np.zeros((grid_size, grid_size, 3), dtype=np.float64)
    for blk in blocks:
        window = lab[blk.y0:blk.y1, blk.x0:blk.x1].reshape(-1, 3)
        means[blk.row, blk.col] = window.astype(np.float64).mean(axis=0)
    return means


def classify_lab(L: float, a: float, b: float, rules: ColorRules = ColorRules()) -> str:
    """Map one averaged Lab triple onto the palette (first match wins)."""
    if a < rules.green_max_a:
        return GREEN
    if rules.white_b[0] < b < rules.white_b[1]:
        return WHITE
    if a < rules.yellow_max_a:
        return YELLOW
    if b > rules.red_min_b:
        return RED
    if L > rules.purple_min_l:
        return PURPLE
    if (
        rules.blue_l[0] < L < rules.blue_l[1]
        and rules.blue_a[0] < a < rules.blue_a[1]
        and b < rules.blue_max_b
    ):
        return BLUE
    return OTHER
