"""
Corner Assignment – Fiducials → Canonical Image Corners
=======================================================

Pairs each detected marker with one of the four image corners so that
the homography pulls the markers out to the frame edges.

The assignment is **greedy**: destinations are visited in the fixed
order TL, TR, BL, BR and each takes the nearest marker not yet used.
This is not an optimal bipartite matching.  When the target is rotated
by roughly 45° (or the markers sit almost equidistant from two corners)
an early destination can claim a marker that a later one needed, and
the face is read mirrored or rotated.  Keep the target roughly upright
in the frame.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

log = logging.getLogger(__name__)

Point = Tuple[float, float]

CORNER_NAMES: Tuple[str, ...] = ("top_left", "top_right", "bottom_left", "bottom_right")


@dataclass(frozen=True)
class CornerCorrespondence:
    """A marker centroid and the canonical corner it maps to."""
    name: str              # one of CORNER_NAMES
    source: Point          # marker centroid in the raw image
    destination: Point     # canonical corner in the rectified frame


def canonical_destinations(
    width: int, height: int, offset: float = 1.0,
) -> np.ndarray:
    """Destination corners ``[TL, TR, BL, BR]`` for a ``width × height`` frame.

    *offset* shifts every corner by the same amount; the default of 1
    places TL at ``(1, 1)`` and BR at ``(W + 1, H + 1)``.
    The offset is applied literally to zero-based centroids, so content
    lands one pixel right and down of a one-based convention.
    """
    return np.array([
        [offset, offset],
        [width + offset, offset],
        [offset, height + offset],
        [width + offset, height + offset],
    ], dtype=np.float64)


def assign_corners(
    centroids: Sequence[Point],
    width: int,
    height: int,
    offset: float = 1.0,
) -> List[CornerCorrespondence]:
    """Greedily match four centroids to the canonical corners.

    Parameters
    ----------
    centroids : sequence of (x, y)
        Exactly four marker centroids, in any order.
    width, height : int
        Size of the raw image.
    offset : float
        Canonical corner offset (see :func:`canonical_destinations`).

    Returns
    -------
    list[CornerCorrespondence]
        Four correspondences ordered TL, TR, BL, BR.
    """
    points = np.asarray(centroids, dtype=np.float64).reshape(-1, 2)
    if len(points) != len(CORNER_NAMES):
        raise ValueError(f"Expected 4 centroids, got {len(points)}")

    destinations = canonical_destinations(width, height, offset)
    used = np.zeros(len(points), dtype=bool)
    result: List[CornerCorrespondence] = []

    for name, dest in zip(CORNER_NAMES, destinations):
        distances = np.linalg.norm(points - dest, axis=1)
        distances[used] = np.inf
        best = int(np.argmin(distances))
        used[best] = True

        result.append(CornerCorrespondence(
            name=name,
            source=(float(points[best, 0]), float(points[best, 1])),
            destination=(float(dest[0]), float(dest[1])),
        ))
        log.debug(
            "Corner %-12s ← marker (%.1f, %.1f)  dist=%.1f",
            name, points[best, 0], points[best, 1], distances[best],
        )

    return result
