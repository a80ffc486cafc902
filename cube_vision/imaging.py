"""
Imaging Helpers – I/O and Binary-Image Primitives
=================================================

Two groups of helpers shared by the pipeline stages:

  • **I/O** – decode a file into the pipeline's RGB float image
    convention, write / display intermediate images for diagnostics.
  • **Primitives** – luminance, Gaussian smoothing, Canny with relative
    thresholds, structuring kernels, hole filling and border clearing.

Image convention:
  Colour images are ``float32`` arrays of shape ``(H, W, 3)`` in **RGB**
  order with values in ``[0, 1]``.  Binary masks are ``bool`` arrays of
  shape ``(H, W)``.  OpenCV's BGR ordering only appears at the file
  boundary (``load_image`` / ``save_image`` / ``show_image``).
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Optional, Tuple

import cv2
import numpy as np

from cube_vision.errors import ImageLoadError

log = logging.getLogger(__name__)

HISTOGRAM_BINS: int = 64  # bins used to pick the automatic Canny threshold
GRADIENT_SCALE: int = 16384  # peak gradient in the int16 Canny input
MIN_GRADIENT: float = 1e-6    # below this the image counts as flat


# ── I/O ────────────────────────────────────────────────────────────────

def load_image(path: str | Path) -> np.ndarray:
    """Decode an image file into an RGB float32 array in ``[0, 1]``.

    Raises
    ------
    ImageLoadError
        If the file does not exist or cannot be decoded.
    """
    path = Path(path)
    if not path.is_file():
        raise ImageLoadError(str(path), "no such file")

    bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if bgr is None:
        raise ImageLoadError(str(path))

    rgb = cv2.cvtColor(bgr, cv2.COLOR_BGR2RGB)
    image = rgb.astype(np.float32) / 255.0
    log.info("Loaded %s  (%dx%d)", path, image.shape[1], image.shape[0])
    return image


def to_bgr_uint8(image: np.ndarray) -> np.ndarray:
    """Convert an RGB float image back to OpenCV's 8-bit BGR layout."""
    u8 = np.clip(np.round(image * 255.0), 0, 255).astype(np.uint8)
    return cv2.cvtColor(u8, cv2.COLOR_RGB2BGR)


def save_image(path: str | Path, image: np.ndarray) -> None:
    """Write an RGB float image to disk (format chosen by extension)."""
    if not cv2.imwrite(str(path), to_bgr_uint8(image)):
        raise OSError(f"Could not write image to {path}")
    log.info("Saved image to %s", path)


def show_image(image: np.ndarray, title: str = "Cube Vision") -> None:
    """Display an RGB float image and block until a key is pressed."""
    cv2.imshow(title, to_bgr_uint8(image))
    cv2.waitKey(0)
    cv2.destroyAllWindows()


# ── Grey-level primitives ──────────────────────────────────────────────

def as_float_image(image: np.ndarray) -> np.ndarray:
    """Return *image* as float32 (OpenCV colour conversions reject float64)."""
    image = np.asarray(image)
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected an (H, W, 3) image, got shape {image.shape}")
    return image.astype(np.float32, copy=False)


def to_gray(image: np.ndarray) -> np.ndarray:
    """Luminance of an RGB float image (ITU-R BT.601 weights)."""
    return cv2.cvtColor(as_float_image(image), cv2.COLOR_RGB2GRAY)


def gaussian_smooth(gray: np.ndarray, sigma: float) -> np.ndarray:
    """Gaussian blur with a ``2·ceil(2σ)+1`` kernel and replicated borders."""
    ksize = 2 * int(math.ceil(2 * sigma)) + 1
    return cv2.GaussianBlur(
        gray, (ksize, ksize), sigma, borderType=cv2.BORDER_REPLICATE,
    )


def canny_edges(
    gray: np.ndarray,
    thresholds: Optional[Tuple[float, float]] = None,
    non_edge_fraction: float = 0.7,
    low_high_ratio: float = 0.4,
) -> np.ndarray:
    """Canny edge detection with thresholds relative to the peak gradient.

    Parameters
    ----------
    gray : np.ndarray
        Single-channel float image in ``[0, 1]``.
    thresholds : (low, high), optional
        Hysteresis thresholds as fractions of the maximum gradient
        magnitude.  If ``None`` the high threshold is chosen so that
        *non_edge_fraction* of all pixels fall below it (measured on a
        64-bin histogram) and the low threshold is
        ``low_high_ratio × high``.

    Gradients are taken on the float image; ``cv2.Canny`` only runs the
    suppression and hysteresis steps, on gradients rescaled so that the
    peak magnitude maps to ``GRADIENT_SCALE`` in 16-bit integers.

    Returns
    -------
    np.ndarray
        Boolean edge mask.
    """
    gray = np.asarray(gray, dtype=np.float32)
    dx = cv2.Sobel(gray, cv2.CV_32F, 1, 0, ksize=3)
    dy = cv2.Sobel(gray, cv2.CV_32F, 0, 1, ksize=3)

    magnitude = np.hypot(dx, dy)
    peak = float(magnitude.max())
    if peak <= MIN_GRADIENT:
        return np.zeros(gray.shape[:2], dtype=bool)

    if thresholds is None:
        counts, _ = np.histogram(
            magnitude / peak, bins=HISTOGRAM_BINS, range=(0.0, 1.0),
        )
        cutoff = non_edge_fraction * magnitude.size
        high = (int(np.argmax(np.cumsum(counts) > cutoff)) + 1) / HISTOGRAM_BINS
        low = low_high_ratio * high
    else:
        low, high = thresholds

    log.debug("Canny thresholds  low=%.4f  high=%.4f  peak=%.5f", low, high, peak)
    scale = GRADIENT_SCALE / peak
    dx16 = np.round(dx * scale).astype(np.int16)
    dy16 = np.round(dy * scale).astype(np.int16)
    edges = cv2.Canny(
        dx16, dy16, low * GRADIENT_SCALE, high * GRADIENT_SCALE, L2gradient=True,
    )
    return edges > 0


# ── Morphology ─────────────────────────────────────────────────────────

def disk_kernel(radius: int) -> np.ndarray:
    """Disk-shaped structuring element; radius 1 is the 3×3 cross."""
    size = 2 * radius + 1
    if radius <= 1:
        return cv2.getStructuringElement(cv2.MORPH_CROSS, (size, size))
    return cv2.getStructuringElement(cv2.MORPH_ELLIPSE, (size, size))


def square_kernel(size: int) -> np.ndarray:
    return cv2.getStructuringElement(cv2.MORPH_RECT, (size, size))


def close_mask(mask: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    closed = cv2.morphologyEx(mask.astype(np.uint8), cv2.MORPH_CLOSE, kernel)
    return closed > 0


def dilate_mask(mask: np.ndarray, kernel: np.ndarray) -> np.ndarray:
    return cv2.dilate(mask.astype(np.uint8), kernel) > 0


def fill_holes(mask: np.ndarray) -> np.ndarray:
    """Fill background regions that cannot be reached from the image edge.

    The mask is padded by one background pixel and flood-filled
    (4-connected) from the corner; anything left unreached is a hole.
    """
    padded = cv2.copyMakeBorder(
        mask.astype(np.uint8) * 255, 1, 1, 1, 1, cv2.BORDER_CONSTANT, value=0,
    )
    flooded = padded.copy()
    h, w = padded.shape
    ff_mask = np.zeros((h + 2, w + 2), dtype=np.uint8)
    cv2.floodFill(flooded, ff_mask, (0, 0), 255)

    filled = (padded > 0) | (flooded == 0)
    return filled[1:-1, 1:-1]


def clear_border(mask: np.ndarray) -> np.ndarray:
    """Remove every 8-connected component that touches the image border."""
    _, labels = cv2.connectedComponents(mask.astype(np.uint8), connectivity=8)
    edge_labels = np.unique(np.concatenate([
        labels[0, :], labels[-1, :], labels[:, 0], labels[:, -1],
    ]))
    edge_labels = edge_labels[edge_labels != 0]
    return mask.astype(bool) & ~np.isin(labels, edge_labels)
