"""
Error taxonomy.

All pipeline failures are fatal: each one means the photograph does not
match the expected physical setup and a new capture is required.
"""

from __future__ import annotations


class CubeVisionError(Exception):
    """Base class for every pipeline failure."""


class ImageLoadError(CubeVisionError):
    """The input path could not be decoded as an image."""

    def __init__(self, path: str, reason: str = "could not decode image") -> None:
        self.path = path
        super().__init__(f"Could not read image {path!r}: {reason}")


class CalibrationError(CubeVisionError):
    """Fiducial detection did not yield the expected number of markers."""

    def __init__(self, found: int, expected: int = 4) -> None:
        self.found = found
        self.expected = expected
        super().__init__(f"Expected {expected} fiducials, but found {found}.")


class RectificationError(CubeVisionError):
    """The perspective correction could not locate the subject."""
