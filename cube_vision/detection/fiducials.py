"""
Fiducial Detection – Circular Corner Markers
============================================

Finds the four filled circles printed near the corners of the target.

Strategy:
  1. Luminance → Gaussian smoothing (σ = 2) to suppress sticker texture.
  2. Canny with *relative* thresholds ``(0.1, 0.9)`` – only the very
     strongest edges seed a contour, which the dark markers supply.
  3. Closing with a radius-1 disk (3×3 cross) bridges one-pixel gaps in
     the marker outlines.
  4. Hole filling turns closed outlines into solid blobs.
  5. Components touching the image border are dropped; a partially
     visible marker cannot be located reliably.
  6. Each remaining component is summarised by an ellipse with the same
     second central moments, and only small ones survive the
     axis-length / area filter.

Exactly four candidates must survive, otherwise the capture is rejected
with :class:`~cube_vision.errors.CalibrationError`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Tuple

import cv2
import numpy as np

from cube_vision.config import FiducialConfig
from cube_vision.errors import CalibrationError
from cube_vision.imaging import (
    canny_edges,
    clear_border,
    close_mask,
    disk_kernel,
    fill_holes,
    gaussian_smooth,
    to_gray,
)

log = logging.getLogger(__name__)


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class CandidateRegion:
    """Ellipse summary of one connected foreground component."""
    centroid: Tuple[float, float]     # (x, y) in pixel coordinates
    major_axis_length: float          # pixels
    minor_axis_length: float          # pixels
    area: float                       # pixel count

    def is_fiducial(self, config: FiducialConfig) -> bool:
        """Return True if the region is small enough to be a marker."""
        return (
            self.major_axis_length < config.max_axis_length
            and self.minor_axis_length < config.max_axis_length
            and self.area < config.max_area
        )


# ── Public API ─────────────────────────────────────────────────────────

def find_fiducials(
    image: np.ndarray,
    config: FiducialConfig = FiducialConfig(),
) -> List[CandidateRegion]:
    """Locate the fiducial markers of an RGB float image.

    Parameters
    ----------
    image : np.ndarray
        RGB float image, shape ``(H, W, 3)``.
    config : FiducialConfig
        Detection thresholds.

    Returns
    -------
    list[CandidateRegion]
        Exactly ``config.expected_count`` regions in label order.

    Raises
    ------
    CalibrationError
        If the filtered candidate count differs from the expected count.
    """
    candidates = detect_candidates(image, config)
    fiducials = [c for c in candidates if c.is_fiducial(config)]

    log.info(
        "Fiducial candidates: %d components, %d after size filter",
        len(candidates), len(fiducials),
    )
    if len(fiducials) != config.expected_count:
        raise CalibrationError(len(fiducials), config.expected_count)

    for f in fiducials:
        log.debug(
            "Fiducial at (%.1f, %.1f)  axes=%.1f/%.1f  area=%.0f",
            f.centroid[0], f.centroid[1],
            f.major_axis_length, f.minor_axis_length, f.area,
        )
    return fiducials


def detect_candidates(
    image: np.ndarray,
    config: FiducialConfig = FiducialConfig(),
) -> List[CandidateRegion]:
    """Segment solid blobs and describe each one, without size filtering."""
    return regions_from_mask(candidate_mask(image, config))


def candidate_mask(
    image: np.ndarray,
    config: FiducialConfig = FiducialConfig(),
) -> np.ndarray:
    """Binary mask of solid, non-border shapes (steps 1–5)."""
    gray = gaussian_smooth(to_gray(image), config.smoothing_sigma)
    edges = canny_edges(gray, thresholds=config.canny_thresholds)
    closed = close_mask(edges, disk_kernel(config.closing_radius))
    return clear_border(fill_holes(closed))


def regions_from_mask(mask: np.ndarray) -> List[CandidateRegion]:
    """Label 8-connected components and fit an equivalent ellipse to each."""
    count, labels, stats, centroids = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=8,
    )

    regions: List[CandidateRegion] = []
    for label in range(1, count):  # 0 is background
        x, y, w, h, area = stats[label]
        component = (labels[y:y + h, x:x + w] == label).astype(np.uint8)
        major, minor = _ellipse_axes(component)
        cx, cy = centroids[label]
        regions.append(CandidateRegion(
            centroid=(float(cx), float(cy)),
            major_axis_length=major,
            minor_axis_length=minor,
            area=float(area),
        ))
    return regions


# ── Geometry helpers ───────────────────────────────────────────────────

def _ellipse_axes(component: np.ndarray) -> Tuple[float, float]:
    """Major / minor axis lengths of the ellipse with equal second moments.

    Each pixel is treated as a unit square, which adds 1/12 to the
    normalised variances.
    """
    m = cv2.moments(component, binaryImage=True)
    n = m["m00"]
    uxx = m["mu20"] / n + 1.0 / 12.0
    uyy = m["mu02"] / n + 1.0 / 12.0
    uxy = m["mu11"] / n

    common = math.sqrt((uxx - uyy) ** 2 + 4.0 * uxy ** 2)
    major = 2.0 * math.sqrt(2.0) * math.sqrt(uxx + uyy + common)
    minor = 2.0 * math.sqrt(2.0) * math.sqrt(max(uxx + uyy - common, 0.0))
    return major, minor
