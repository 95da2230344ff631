"""Fixed dB-to-color gradient for the spectrogram pane."""

from __future__ import annotations

import numpy as np

__all__ = ["GRADIENT", "build_gradient", "color_indices"]

LEVELS = 256

# Magma-like control points: silence is near black, loud bins are pale yellow.
_CONTROL_POINTS: list[tuple[float, tuple[int, int, int]]] = [
    (0.0, (0, 0, 4)),
    (0.25, (81, 18, 124)),
    (0.5, (183, 55, 121)),
    (0.75, (254, 159, 109)),
    (1.0, (252, 253, 191)),
]


def build_gradient(
    controls: list[tuple[float, tuple[int, int, int]]],
    levels: int = LEVELS,
) -> list[str]:
    """Interpolate control points into ``levels`` hex color strings."""
    positions = np.array([c[0] for c in controls])
    grid = np.linspace(0.0, 1.0, levels)
    channels = [
        np.clip(np.interp(grid, positions, [c[1][ch] for c in controls]), 0, 255).astype(int)
        for ch in range(3)
    ]
    return [f"#{r:02x}{g:02x}{b:02x}" for r, g, b in zip(*channels)]


GRADIENT: list[str] = build_gradient(_CONTROL_POINTS)


def color_indices(db: np.ndarray, floor_db: float, ceiling_db: float) -> np.ndarray:
    """Map dB values to gradient indices; values outside the range saturate."""
    span = ceiling_db - floor_db
    level = (np.asarray(db, dtype=np.float64) - floor_db) / span
    return np.clip((level * (LEVELS - 1)).round(), 0, LEVELS - 1).astype(np.intp)
