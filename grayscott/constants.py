"""Simulation constants. Diffusion rates scale with grid area (per 100 cells)."""

# Grid dimensions must be multiples of the tile size used by the backends.
TILE_SIZE = 16
DEFAULT_WIDTH, DEFAULT_HEIGHT = 256, 256

DT = 0.5
DX = 2.0
FEED = 0.012
KILL = 0.052
DU_PER_AREA = 0.0004
DV_PER_AREA = 0.0002
AREA_UNIT = 100.0

# Stable baseline and the co-existence seed placed in the central patch.
BASELINE_U, BASELINE_V = 1.0, 0.0
SEED_U, SEED_V = 0.5, 0.25
PATCH_START, PATCH_END = 0.48, 0.52
# Relative multiplicative noise applied to every value below 1.0.
PERTURBATION = 0.01

# Explicit Euler on the 5-point stencil is stable for dt * D / dx**2 <= 1/4.
STABILITY_LIMIT = 0.25
