"""
Per-step update: periodic 5-point Laplacian, then Gray-Scott reaction terms, explicit Euler.
Kernels read the pre-step fields and write into separate output buffers; callers swap
the buffers once every region of the grid has been written.
"""

import numpy as np

from grayscott.constants import DX
from grayscott.params import Params

FULL = slice(None)


def laplacian_at(field: np.ndarray, width: int, height: int, x: int, y: int, dx: float = DX) -> float:
    """
    Laplacian of one cell of a row-major field of width*height values (flat or (height, width)).
    Every neighbour index wraps on its own axis; no edge special-casing.
    """
    flat = field.reshape(-1)
    center = flat[y * width + x]
    right = flat[y * width + (x + 1) % width]
    left = flat[y * width + (x - 1) % width]
    up = flat[((y - 1) % height) * width + x]
    down = flat[((y + 1) % height) * width + x]
    return float((right + left + up + down - 4.0 * center) / (dx * dx))


def _region_indices(n: int, region: slice) -> np.ndarray:
    return np.arange(n)[region]


def laplacian(field: np.ndarray, dx: float = DX, rows: slice = FULL, cols: slice = FULL) -> np.ndarray:
    """Periodic Laplacian of field[rows, cols]; neighbours outside the region are read from field."""
    height, width = field.shape
    if rows == FULL and cols == FULL:
        # right + left + up + down, same summation order as the region path
        total = (
            np.roll(field, -1, axis=1) + np.roll(field, 1, axis=1)
            + np.roll(field, 1, axis=0) + np.roll(field, -1, axis=0)
        )
        return (total - 4.0 * field) / (dx * dx)
    ys = _region_indices(height, rows)
    xs = _region_indices(width, cols)
    center = field[np.ix_(ys, xs)]
    total = (
        field[np.ix_(ys, (xs + 1) % width)] + field[np.ix_(ys, (xs - 1) % width)]
        + field[np.ix_((ys - 1) % height, xs)] + field[np.ix_((ys + 1) % height, xs)]
    )
    return (total - 4.0 * center) / (dx * dx)


def react_diffuse(
    u: np.ndarray,
    v: np.ndarray,
    u_out: np.ndarray,
    v_out: np.ndarray,
    params: Params,
    rows: slice = FULL,
    cols: slice = FULL,
) -> None:
    """Write one explicit-Euler step of region [rows, cols] into u_out/v_out. u and v are only read."""
    lap_u = laplacian(u, params.dx, rows, cols)
    lap_v = laplacian(v, params.dx, rows, cols)
    uc = u[rows, cols]
    vc = v[rows, cols]
    uvv = uc * vc * vc
    du_dt = params.du * lap_u - uvv + params.feed * (1.0 - uc)
    dv_dt = params.dv * lap_v + uvv - (params.feed + params.kill) * vc
    u_out[rows, cols] = uc + params.dt * du_dt
    v_out[rows, cols] = vc + params.dt * dv_dt


def step(u: np.ndarray, v: np.ndarray, params: Params) -> tuple[np.ndarray, np.ndarray]:
    """One full-grid step into fresh arrays; inputs are left untouched."""
    u_new = np.empty_like(u)
    v_new = np.empty_like(v)
    react_diffuse(u, v, u_new, v_new, params)
    return u_new, v_new
