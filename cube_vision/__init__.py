"""
Cube Face Colour Reader
=======================

Reads the colours of a 4×4 grid face (e.g. a puzzle-cube face)
photographed from an arbitrary angle.

Architecture:
    1. Fiducial Detection  – four filled circles near the target corners
    2. Corner Assignment   – markers → canonical image corners (greedy)
    3. Rectification       – projective warp + crop to the subject
    4. Colour Grid         – 4×4 Lab averages → {green, white, yellow,
                             red, purple, blue, other}
"""

__version__ = "1.0.0"
