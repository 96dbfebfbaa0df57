"""
Display-only normalization: map the current frame's min–max to 0–1 so small pattern
contrast stays visible, then colour through piecewise-linear stops.
"""

import numpy as np

# Ocean: deep navy (U low, reacting) → teal → pale foam (U high, baseline)
_OCEAN_STOPS = np.array([
    [0.02, 0.03, 0.12], [0.05, 0.15, 0.35], [0.08, 0.42, 0.55],
    [0.45, 0.78, 0.78], [0.92, 0.97, 0.95],
], dtype=np.float64)
_OCEAN_T = np.array([0.0, 0.25, 0.5, 0.75, 1.0], dtype=np.float64)

# Ember: black → red → orange → yellow → white
_EMBER_STOPS = np.array([
    [0.0, 0.0, 0.0], [0.45, 0.02, 0.0], [0.9, 0.3, 0.0],
    [1.0, 0.78, 0.2], [1.0, 1.0, 1.0],
], dtype=np.float64)
_EMBER_T = np.array([0.0, 0.2, 0.45, 0.75, 1.0], dtype=np.float64)

_BW_STOPS = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]], dtype=np.float64)
_BW_T = np.array([0.0, 1.0], dtype=np.float64)

PALETTES = {
    "ocean": (_OCEAN_STOPS, _OCEAN_T),
    "ember": (_EMBER_STOPS, _EMBER_T),
    "bw": (_BW_STOPS, _BW_T),
}


def _apply_gradient(t: np.ndarray, stops: np.ndarray, t_vals: np.ndarray) -> np.ndarray:
    """Map t in [0,1] to RGB via piecewise-linear stops. t 1D, returns (n, 3)."""
    t = np.clip(np.asarray(t, dtype=np.float64).reshape(-1), 0.0, 1.0)
    out = np.zeros((t.size, 3), dtype=np.float64)
    for i in range(len(t_vals) - 1):
        t0, t1 = t_vals[i], t_vals[i + 1]
        mask = (t >= t0) & (t < t1) if i < len(t_vals) - 2 else (t >= t0)
        s1 = ((t[mask] - t0) / max(1e-9, t1 - t0)).reshape(-1, 1)
        out[mask] = s1 * stops[i + 1] + (1.0 - s1) * stops[i]
    return out


def normalize(field: np.ndarray) -> np.ndarray:
    """Min–max scale to [0, 1]; a flat field maps to all ones (baseline look)."""
    lo, hi = float(np.min(field)), float(np.max(field))
    if hi - lo > 1e-12:
        return (field - lo) / (hi - lo)
    return np.ones_like(field, dtype=np.float64)


def field_to_rgb(frame: np.ndarray, width: int, height: int, palette: str = "ocean") -> np.ndarray:
    """Returns (height, width, 3) uint8 RGB for a row-major frame of width*height values."""
    try:
        stops, t_vals = PALETTES[palette]
    except KeyError:
        raise ValueError(f"unknown palette {palette!r}, expected one of {sorted(PALETTES)}") from None
    t = normalize(np.asarray(frame, dtype=np.float64).reshape(height, width))
    rgb = _apply_gradient(t.reshape(-1), stops, t_vals).reshape(height, width, 3)
    return (np.clip(rgb, 0, 1) * 255).round().astype(np.uint8)
