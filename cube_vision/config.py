"""
Pipeline Configuration – Tuned Domain Constants
===============================================

Every threshold used by the pipeline lives here as a named field.  The
defaults were tuned for one camera / distance / lighting setup:

  • Fiducial markers of roughly 10–60 px diameter at the capture distance.
  • A 4×4 grid face filling most of the frame after rectification.
  • Lab boundaries measured on sRGB captures of the six sticker colours.

The dataclasses are frozen; use ``dataclasses.replace`` to derive a
variant instead of mutating a shared instance.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


# ── Stage 1: fiducial detection ────────────────────────────────────────

@dataclass(frozen=True)
class FiducialConfig:
    """Parameters for finding the four circular corner markers."""
    smoothing_sigma: float = 2.0
    canny_thresholds: Tuple[float, float] = (0.1, 0.9)   # fraction of max gradient
    closing_radius: int = 1                              # disk radius (3×3 cross)
    max_axis_length: float = 70.0                        # pixels
    max_area: float = 5000.0                             # pixels²
    expected_count: int = 4


# ── Stage 2: corner correspondence ─────────────────────────────────────

@dataclass(frozen=True)
class CornerConfig:
    """Placement of the canonical destination corners.

    Destinations are ``(offset, offset)`` to ``(W + offset, H + offset)``.
    """
    corner_offset: float = 1.0


# ── Stage 3: rectification ─────────────────────────────────────────────

@dataclass(frozen=True)
class RectifyConfig:
    """Parameters for re-detecting and cropping the warped subject."""
    smoothing_sigma: float = 2.0
    canny_thresholds: Optional[Tuple[float, float]] = None   # None → automatic
    non_edge_fraction: float = 0.7                           # automatic high threshold
    low_high_ratio: float = 0.4                              # automatic low threshold
    dilation_size: int = 3                                   # square side
    crop_margin: int = 10                                    # px per side, >0 expands
    min_origin: int = 0                                      # first pixel row/column


# ── Stage 4: colour classification ─────────────────────────────────────

@dataclass(frozen=True)
class ColorRules:
    """Ordered Lab decision boundaries (first matching rule wins)."""
    green_max_a: float = -45.0
    white_b: Tuple[float, float] = (-30.0, 20.0)
    yellow_max_a: float = 0.0
    red_min_b: float = 20.0
    purple_min_l: float = 40.0
    blue_l: Tuple[float, float] = (20.0, 45.0)
    blue_a: Tuple[float, float] = (35.0, 80.0)
    blue_max_b: float = -70.0


@dataclass(frozen=True)
class ClassifierConfig:
    """Grid sampling parameters."""
    grid_size: int = 4
    border_fraction: float = 0.1
    rules: ColorRules = field(default_factory=ColorRules)


# ── Whole pipeline ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class PipelineConfig:
    fiducials: FiducialConfig = field(default_factory=FiducialConfig)
    corners: CornerConfig = field(default_factory=CornerConfig)
    rectify: RectifyConfig = field(default_factory=RectifyConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)


DEFAULT_CONFIG = PipelineConfig()
