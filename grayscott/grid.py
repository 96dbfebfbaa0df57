"""2D grid of U and V concentrations. Arrays are (height, width), row-major, so
field.ravel()[y * width + x] is cell (x, y)."""

import numpy as np

from grayscott.constants import (
    BASELINE_U,
    BASELINE_V,
    PATCH_END,
    PATCH_START,
    PERTURBATION,
    SEED_U,
    SEED_V,
    TILE_SIZE,
)
from grayscott.errors import ConfigurationError, ResourceError


def validate_dimensions(width: int, height: int, tile_size: int = TILE_SIZE) -> None:
    """Both dimensions must be positive integers and exact multiples of tile_size."""
    for name, n in (("width", width), ("height", height)):
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)):
            raise ConfigurationError(f"{name} must be an integer, got {n!r}")
        if n <= 0:
            raise ConfigurationError(f"{name} must be positive, got {n}")
        if n % tile_size != 0:
            raise ConfigurationError(f"{name}={n} is not a multiple of the tile size {tile_size}")


def allocate_field(width: int, height: int, value: float = 0.0) -> np.ndarray:
    try:
        return np.full((height, width), value, dtype=np.float64)
    except MemoryError as e:
        raise ResourceError(f"cannot allocate a {width}x{height} field") from e


def patch_range(n: int) -> tuple[int, int]:
    """Indices i with PATCH_START*n <= i < PATCH_END*n, as a half-open (start, stop)."""
    i = np.arange(n)
    inside = np.flatnonzero((i >= PATCH_START * n) & (i < PATCH_END * n))
    if inside.size == 0:
        return 0, 0
    return int(inside[0]), int(inside[-1]) + 1


def patch_mask(width: int, height: int) -> np.ndarray:
    """Boolean (height, width) mask of the central seed patch."""
    mask = np.zeros((height, width), dtype=bool)
    y0, y1 = patch_range(height)
    x0, x1 = patch_range(width)
    mask[y0:y1, x0:x1] = True
    return mask


def seed_patch(u: np.ndarray, v: np.ndarray) -> None:
    """Baseline U=1, V=0 everywhere; co-existence values in the central patch."""
    height, width = u.shape
    u.fill(BASELINE_U)
    v.fill(BASELINE_V)
    mask = patch_mask(width, height)
    u[mask] = SEED_U
    v[mask] = SEED_V


def perturb(field: np.ndarray, rng: np.random.Generator, amount: float = PERTURBATION) -> None:
    """value += value * r, r ~ U[-amount, amount], for every value < 1. Not clamped afterwards."""
    r = rng.uniform(-amount, amount, size=field.shape)
    below = field < 1.0
    field[below] += field[below] * r[below]


class Grid:
    """Local (host-side) U and V buffers, filled once and handed to the backend."""

    __slots__ = ("width", "height", "u", "v")

    def __init__(self, width: int, height: int, tile_size: int = TILE_SIZE) -> None:
        validate_dimensions(width, height, tile_size)
        self.width = int(width)
        self.height = int(height)
        self.u = allocate_field(self.width, self.height, BASELINE_U)
        self.v = allocate_field(self.width, self.height, BASELINE_V)

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    def index(self, x: int, y: int) -> int:
        return y * self.width + x

    def get_cell(self, x: int, y: int) -> tuple[float, float]:
        return float(self.u[y, x]), float(self.v[y, x])

    def set_cell(self, x: int, y: int, u: float, v: float) -> None:
        self.u[y, x] = u
        self.v[y, x] = v

    def set_initial_state(self, rng: np.random.Generator) -> None:
        """Seeded patch, then independent perturbation of U and V. Overwrites everything."""
        seed_patch(self.u, self.v)
        perturb(self.u, rng)
        perturb(self.v, rng)
