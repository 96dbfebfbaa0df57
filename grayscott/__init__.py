"""Gray-Scott reaction-diffusion core: grid seeding, periodic stencil, double-buffered stepping."""

from grayscott.backend import Backend, NumpyBackend, TiledBackend, get_backend
from grayscott.constants import DEFAULT_HEIGHT, DEFAULT_WIDTH, TILE_SIZE
from grayscott.diffusion import laplacian, laplacian_at, react_diffuse, step
from grayscott.errors import ConfigurationError, ExecutionFault, ResourceError, SimulationError
from grayscott.grid import Grid, validate_dimensions
from grayscott.params import Params
from grayscott.state import SimulationState, Status

__all__ = [
    "Backend", "NumpyBackend", "TiledBackend", "get_backend",
    "DEFAULT_WIDTH", "DEFAULT_HEIGHT", "TILE_SIZE",
    "laplacian", "laplacian_at", "react_diffuse", "step",
    "SimulationError", "ConfigurationError", "ResourceError", "ExecutionFault",
    "Grid", "validate_dimensions", "Params",
    "SimulationState", "Status",
]
