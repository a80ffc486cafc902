"""
Synthetic test images shared by the test modules.
"""

import cv2
import numpy as np

BLACK = (0.0, 0.0, 0.0)
WHITE = (1.0, 1.0, 1.0)

# Pure sRGB primaries and their expected labels
RGB = {
    "green": (0.0, 1.0, 0.0),
    "white": (1.0, 1.0, 1.0),
    "yellow": (1.0, 1.0, 0.0),
    "red": (1.0, 0.0, 0.0),
    "purple": (1.0, 0.0, 1.0),
    "blue": (0.0, 0.0, 1.0),
}

# Asymmetric so a rotated or mirrored reading cannot pass.  Blue (the
# strongest edge against white) only appears in the inner cells.
FACE_LAYOUT = [
    ["green", "red", "purple", "red"],
    ["purple", "blue", "green", "green"],
    ["red", "blue", "blue", "purple"],
    ["green", "purple", "red", "red"],
]

MARKER_CENTRES = [(20, 20), (380, 20), (20, 380), (380, 380)]


def blank(height, width, color=WHITE):
    image = np.empty((height, width, 3), dtype=np.float32)
    image[:] = color
    return image


def with_disks(image, centres, radius, color=BLACK):
    out = image.copy()
    for cx, cy in centres:
        cv2.circle(out, (int(cx), int(cy)), int(radius), color, -1)
    return out


def paint_grid(image, layout, origin, cell):
    out = image.copy()
    x0, y0 = origin
    for i, row in enumerate(layout):
        for j, name in enumerate(row):
            out[y0 + i * cell:y0 + (i + 1) * cell, x0 + j * cell:x0 + (j + 1) * cell] = RGB[name]
    return out


def face_image(layout=FACE_LAYOUT, marker_radius=5):
    """400×400 target: corner markers at 20 px, 4×4 grid spanning 40–360."""
    image = blank(400, 400)
    image = paint_grid(image, layout, origin=(40, 40), cell=80)
    return with_disks(image, MARKER_CENTRES, marker_radius)


def perspective(image, dst_corners, border=WHITE):
    """Warp *image* so its corners land on *dst_corners* (TL, TR, BL, BR)."""
    h, w = image.shape[:2]
    src = np.array([[0, 0], [w, 0], [0, h], [w, h]], dtype=np.float32)
    dst = np.array(dst_corners, dtype=np.float32)
    matrix = cv2.getPerspectiveTransform(src, dst)
    return cv2.warpPerspective(
        image, matrix, (w, h),
        flags=cv2.INTER_LINEAR,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=border,
    )
