"""
Rectification – Perspective Correction & Subject Crop
=====================================================

Pipeline:
  1. Fit a projective homography (8 DoF) from the four marker → corner
     correspondences with OpenCV's least-squares DLT.
  2. Warp the full image into a canvas of the *original* size; content
     that lands outside the canvas is clipped.
  3. Re-detect edges on the warped image (σ = 2 smoothing, Canny with
     automatic thresholds), dilate with a 3×3 square and fill holes.
  4. Take the component with the largest bounding-box area as the
     subject, grow its box by a fixed margin and clamp it to the canvas.
  5. Crop.

A warp is never applied in place; every step returns a new array.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Sequence, Tuple

import cv2
import numpy as np

from cube_vision.config import RectifyConfig
from cube_vision.detection.corners import CornerCorrespondence
from cube_vision.errors import RectificationError
from cube_vision.imaging import (
    as_float_image,
    canny_edges,
    dilate_mask,
    fill_holes,
    gaussian_smooth,
    square_kernel,
    to_gray,
)

log = logging.getLogger(__name__)

Box = Tuple[int, int, int, int]  # (x, y, width, height)


# ── Data classes ───────────────────────────────────────────────────────

@dataclass(frozen=True)
class Rectification:
    """Result of perspective correction."""
    image: np.ndarray            # Cropped, rectified subject
    warped: np.ndarray           # Full warped canvas (original size)
    homography: np.ndarray       # 3×3 source → destination transform
    subject_box: Box             # Largest component's bounding box
    crop_box: Box                # Final (clamped) crop rectangle


# ── Public API ─────────────────────────────────────────────────────────

def rectify(
    correspondences: Sequence[CornerCorrespondence],
    image: np.ndarray,
    config: RectifyConfig = RectifyConfig(),
) -> Rectification:
    """Undo the perspective distortion and crop to the subject.

    Raises
    ------
    RectificationError
        If no homography can be fitted or no subject is found.
    """
    homography = fit_homography(correspondences)
    warped = warp_image(image, homography)

    subject = find_subject_box(warped, config)
    crop = crop_rectangle(
        subject, warped.shape, margin=config.crop_margin,
        min_origin=config.min_origin,
    )
    x, y, w, h = crop
    cropped = warped[y:y + h, x:x + w].copy()

    log.info("Rectified  subject=%s  crop=%s  output=%dx%d", subject, crop, w, h)
    return Rectification(
        image=cropped,
        warped=warped,
        homography=homography,
        subject_box=subject,
        crop_box=crop,
    )


def fit_homography(correspondences: Sequence[CornerCorrespondence]) -> np.ndarray:
    """Least-squares projective transform mapping sources onto destinations."""
    if len(correspondences) < 4:
        raise ValueError(f"Need 4 correspondences, got {len(correspondences)}")

    src = np.array([c.source for c in correspondences], dtype=np.float64)
    dst = np.array([c.destination for c in correspondences], dtype=np.float64)

    homography, _ = cv2.findHomography(src, dst, 0)
    if homography is None:
        raise RectificationError(
            "Could not fit a homography: marker positions are degenerate"
        )
    log.debug("Homography:\n%s", np.array2string(homography, precision=4))
    return homography


def warp_image(image: np.ndarray, homography: np.ndarray) -> np.ndarray:
    """Warp *image* through *homography* into a canvas of the same size."""
    h, w = image.shape[:2]
    return cv2.warpPerspective(
        as_float_image(image), homography, (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=0,
    )


def subject_mask(warped: np.ndarray, config: RectifyConfig = RectifyConfig()) -> np.ndarray:
    """Solid foreground mask of the warped image."""
    gray = gaussian_smooth(to_gray(warped), config.smoothing_sigma)
    edges = canny_edges(
        gray,
        thresholds=config.canny_thresholds,
        non_edge_fraction=config.non_edge_fraction,
        low_high_ratio=config.low_high_ratio,
    )
    dilated = dilate_mask(edges, square_kernel(config.dilation_size))
    return fill_holes(dilated)


def find_subject_box(
    warped: np.ndarray, config: RectifyConfig = RectifyConfig(),
) -> Box:
    """Bounding box ``(x, y, w, h)`` of the component with the largest box area."""
    mask = subject_mask(warped, config)
    count, _, stats, _ = cv2.connectedComponentsWithStats(
        mask.astype(np.uint8), connectivity=8,
    )
    if count <= 1:
        raise RectificationError("No subject region found after rectification")

    boxes: List[Box] = [
        tuple(int(v) for v in stats[label, :4]) for label in range(1, count)
    ]
    best = boxes[0]
    for box in boxes[1:]:
        if box[2] * box[3] > best[2] * best[3]:
            best = box

    log.debug("Subject search: %d components, largest box %s", len(boxes), best)
    return best


def crop_rectangle(
    box: Box,
    image_shape: Tuple[int, ...],
    margin: int = 10,
    min_origin: int = 0,
) -> Box:
    """Grow *box* by *margin* per side and clamp it inside the image.

    The origin is clamped to *min_origin*, then width and height are
    limited so the rectangle ends at or before the image edge.
    """
    img_h, img_w = image_shape[:2]
    x, y, w, h = box

    x = max(x - margin, min_origin)
    y = max(y - margin, min_origin)
    w = max(w + 2 * margin, 1)
    h = max(h + 2 * margin, 1)

    w = min(w, img_w - x)
    h = min(h, img_h - y)
    if w < 1 or h < 1:
        raise RectificationError(f"Crop rectangle {(x, y, w, h)} lies outside the image")
    return (x, y, w, h)
