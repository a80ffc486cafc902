"""
Inference Pipeline – End-to-End Image → Colour Grid
===================================================

This is the single-call entry point for reading a grid face.

Pipeline stages:
  1. Fiducial detection   – four circular markers near the corners
  2. Corner assignment    – greedy nearest match to the canonical corners
  3. Rectification        – homography warp + crop to the subject
  4. Colour classification – 4×4 Lab averages → palette labels

Every stage is a pure function of its inputs; the pipeline only threads
the values through and keeps them for diagnostics.

Optional extras:
  • Debug visualisation of the sampling windows on the rectified face
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

import cv2
import numpy as np

from cube_vision.config import DEFAULT_CONFIG, PipelineConfig
from cube_vision.detection.corners import CornerCorrespondence, assign_corners
from cube_vision.detection.fiducials import CandidateRegion, find_fiducials
from cube_vision.detection.rectify import Rectification, rectify
from cube_vision.imaging import load_image, to_bgr_uint8
from cube_vision.inference.colors import classify_colors, grid_blocks
from cube_vision.inference.grid_utils import ColorGrid

log = logging.getLogger(__name__)

# BGR drawing colours for the debug overlay
_LABEL_COLORS = {
    "green": (0, 160, 0),
    "white": (255, 255, 255),
    "yellow": (0, 220, 220),
    "red": (0, 0, 220),
    "purple": (160, 0, 160),
    "blue": (220, 0, 0),
    "other": (128, 128, 128),
}


# ── Result dataclass ──────────────────────────────────────────────────

@dataclass(frozen=True)
class FaceReading:
    """Full output of the pipeline, intermediate values included."""
    grid: ColorGrid
    fiducials: List[CandidateRegion]
    correspondences: List[CornerCorrespondence]
    rectification: Rectification

    @property
    def rectified_image(self) -> np.ndarray:
        return self.rectification.image


# ── Pipeline class ─────────────────────────────────────────────────────

class FaceReader:
    """Photograph of a marker-framed grid face → colour grid.

    Parameters
    ----------
    config : PipelineConfig, optional
        Stage thresholds; defaults to the tuned constants.
    """

    def __init__(self, config: Optional[PipelineConfig] = None) -> None:
        self.config = config or DEFAULT_CONFIG

    # ── Public API ─────────────────────────────────────────────────────

    def read(self, image: np.ndarray) -> FaceReading:
        """Run all four stages on an RGB float image.

        Raises
        ------
        CalibrationError
            The marker count is not four.
        RectificationError
            No subject was found in the warped image.
        """
        h, w = image.shape[:2]

        # 1. Fiducials
        fiducials = find_fiducials(image, self.config.fiducials)

        # 2. Corner correspondences
        correspondences = assign_corners(
            [f.centroid for f in fiducials], w, h,
            offset=self.config.corners.corner_offset,
        )

        # 3. Perspective correction + crop
        rectification = rectify(correspondences, image, self.config.rectify)

        # 4. Colour grid
        grid = classify_colors(rectification.image, self.config.classifier)
        log.info("Colour counts: %s", grid.counts())

        return FaceReading(
            grid=grid,
            fiducials=fiducials,
            correspondences=correspondences,
            rectification=rectification,
        )

    def read_file(self, image_path: str | Path) -> FaceReading:
        return self.read(load_image(image_path))

    # ── Debug visualisation ────────────────────────────────────────────

    def visualize(
        self,
        reading: FaceReading,
        show: bool = True,
        save_path: Optional[str] = None,
    ) -> np.ndarray:
        """Draw the sampling windows and labels on the rectified image.

        Returns
        -------
        np.ndarray
            Annotated BGR image.
        """
        vis = to_bgr_uint8(reading.rectified_image)
        cfg = self.config.classifier

        for blk in grid_blocks(vis.shape, cfg.grid_size, cfg.border_fraction):
            label = reading.grid[blk.row, blk.col]
            color = _LABEL_COLORS.get(label, (128, 128, 128))
            cv2.rectangle(vis, (blk.x0, blk.y0), (blk.x1 - 1, blk.y1 - 1), color, 2)
            cv2.putText(
                vis, label,
                (blk.x0 + 4, (blk.y0 + blk.y1) // 2),
                cv2.FONT_HERSHEY_SIMPLEX, 0.45, (0, 0, 0), 2,
            )
            cv2.putText(
                vis, label,
                (blk.x0 + 4, (blk.y0 + blk.y1) // 2),
                cv2.FONT_HERSHEY_SIMPLEX, 0.45, (255, 255, 255), 1,
            )

        if save_path:
            cv2.imwrite(save_path, vis)
            log.info("Saved debug image to %s", save_path)

        if show:
            cv2.imshow("Cube Face", vis)
            cv2.waitKey(0)
            cv2.destroyAllWindows()

        return vis


def classify(image_path: str | Path, config: Optional[PipelineConfig] = None) -> ColorGrid:
    """Read the colour grid of the face photographed in *image_path*."""
    return FaceReader(config).read_file(image_path).grid
