"""
Colour Grid Utilities – Result Type & Rendering
===============================================

Responsibilities:
  1. Hold the 4×4 grid of colour labels (row-major, top row first).
  2. Validate that every label belongs to the fixed palette.
  3. Render the grid as aligned text or as a JSON-ready dict.
"""

from __future__ import annotations

import json
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np


# ── Canonical palette ─────────────────────────────────────────────────

GREEN = "green"
WHITE = "white"
YELLOW = "yellow"
RED = "red"
PURPLE = "purple"
BLUE = "blue"
OTHER = "other"

PALETTE: Tuple[str, ...] = (GREEN, WHITE, YELLOW, RED, PURPLE, BLUE, OTHER)


# ── Data structures ────────────────────────────────────────────────────

@dataclass(frozen=True)
class ColorGrid:
    """Colour labels of an N×N grid face."""
    labels: Tuple[Tuple[str, ...], ...]
    lab_means: Optional[np.ndarray] = None     # (N, N, 3) mean L, a, b per cell

    def __post_init__(self) -> None:
        n = len(self.labels)
        if n == 0 or any(len(row) != n for row in self.labels):
            raise ValueError(f"Grid must be square, got {[len(r) for r in self.labels]}")
        unknown = {lbl for row in self.labels for lbl in row} - set(PALETTE)
        if unknown:
            raise ValueError(f"Labels outside the palette: {sorted(unknown)}")

    @classmethod
    def from_rows(
        cls, rows: Sequence[Sequence[str]], lab_means: Optional[np.ndarray] = None,
    ) -> "ColorGrid":
        return cls(labels=tuple(tuple(r) for r in rows), lab_means=lab_means)

    @property
    def size(self) -> int:
        return len(self.labels)

    def __getitem__(self, index: Tuple[int, int]) -> str:
        row, col = index
        return self.labels[row][col]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ColorGrid):
            return self.labels == other.labels
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.labels)

    def to_list(self) -> List[List[str]]:
        return [list(row) for row in self.labels]

    def counts(self) -> Dict[str, int]:
        """Number of cells per palette colour (zero counts included)."""
        tally = Counter(lbl for row in self.labels for lbl in row)
        return {color: tally.get(color, 0) for color in PALETTE}

    def to_text(self) -> str:
        """Render as aligned, quoted columns – one grid row per line."""
        width = max(len(lbl) for row in self.labels for lbl in row) + 2
        lines = [
            "    ".join(f'"{lbl}"'.ljust(width) for lbl in row).rstrip()
            for row in self.labels
        ]
        return "\n".join(lines)

    def to_dict(self) -> Dict:
        out: Dict = {"grid": self.to_list(), "counts": self.counts()}
        if self.lab_means is not None:
            out["lab_means"] = np.round(self.lab_means, 2).tolist()
        return out

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def __str__(self) -> str:
        return self.to_text()
