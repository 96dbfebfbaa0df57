"""
SimulationState: owns the U/V field buffers across frames.

Lifecycle: UNINITIALIZED -> READY on the first step() (or initialize()), READY -> READY on every
step. Any resource or execution fault latches FAULTED; no further step runs until reset().
Fields are double-buffered: each step reads the front buffers, writes the back buffers, and
swaps only after the backend has finished the whole grid.
"""

import enum
import logging
from functools import partial

import numpy as np

from grayscott.backend import Backend, get_backend
from grayscott.constants import TILE_SIZE
from grayscott.diffusion import react_diffuse
from grayscott.errors import ConfigurationError, ExecutionFault, ResourceError, SimulationError
from grayscott.grid import Grid, validate_dimensions
from grayscott.params import Params
from grayscott.seed_util import make_rng

logger = logging.getLogger(__name__)


class Status(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAULTED = "faulted"


def _output_view(buffer, width: int, height: int) -> np.ndarray:
    """Writable float view of a caller buffer holding width*height values."""
    if isinstance(buffer, np.ndarray):
        target = buffer
    else:
        try:
            target = np.asarray(memoryview(buffer))
        except TypeError as e:
            raise ConfigurationError(f"output buffer must support the buffer protocol, got {type(buffer).__name__}") from e
    if target.size != width * height:
        raise ConfigurationError(f"output buffer holds {target.size} values, expected {width}x{height}={width * height}")
    if not target.flags.writeable:
        raise ConfigurationError("output buffer is read-only")
    if target.dtype.kind != "f":
        raise ConfigurationError(f"output buffer must hold floats, got dtype {target.dtype}")
    return target


class SimulationState:
    """
    Gray-Scott simulation on a periodic grid.

    Args:
        seed: Seed of the perturbation noise. None or -1 picks a fresh seed (see `seed_used`).
        backend: "numpy", "tiled" or a `Backend` instance.
        tile_size: Grid dimensions must be multiples of this.
        params: Explicit `Params`. If None, `Params.for_grid` is used with `param_overrides`
            once the grid size is known.
        **param_overrides: dt, dx, feed, kill, du, dv.
    """

    def __init__(
        self,
        seed: int | None = None,
        backend: "str | Backend" = "numpy",
        tile_size: int = TILE_SIZE,
        params: Params | None = None,
        **param_overrides,
    ) -> None:
        if params is not None and param_overrides:
            raise ConfigurationError("pass either params or individual parameter overrides, not both")
        unknown = set(param_overrides) - {"dt", "dx", "feed", "kill", "du", "dv"}
        if unknown:
            raise ConfigurationError(f"unknown parameters: {sorted(unknown)}")
        if isinstance(tile_size, bool) or not isinstance(tile_size, int) or tile_size <= 0:
            raise ConfigurationError(f"tile_size must be a positive integer, got {tile_size!r}")
        self.seed = seed
        self.tile_size = tile_size
        self.backend = get_backend(backend, tile_size=tile_size)
        self._fixed_params = params
        self._param_overrides = param_overrides
        self._release()

    def _release(self) -> None:
        self.status = Status.UNINITIALIZED
        self.width: int | None = None
        self.height: int | None = None
        self.params: Params | None = None
        self.seed_used: int | None = None
        self.step_count = 0
        self._u = self._v = self._u_next = self._v_next = None

    # --- lifecycle ---

    def initialize(self, width: int, height: int) -> None:
        """Validate, allocate and seed the fields. Only valid while UNINITIALIZED."""
        if self.status is not Status.UNINITIALIZED:
            raise ConfigurationError(f"cannot initialize a {self.status.value} state; call reset() first")
        self._allocate(width, height)
        rng, self.seed_used = make_rng(self.seed)
        try:
            grid = Grid(width, height, self.tile_size)
        except ResourceError as e:
            self._fault(str(e))
            raise
        grid.set_initial_state(rng)
        self._upload(grid.u, grid.v)
        logger.info(
            "Initialized %dx%d grid (seed=%d, backend=%s, dt=%g, dx=%g, F=%g, k=%g, Du=%g, Dv=%g)",
            width, height, self.seed_used, self.backend.name,
            self.params.dt, self.params.dx, self.params.feed, self.params.kill, self.params.du, self.params.dv,
        )

    def restore(self, u: np.ndarray, v: np.ndarray, step_count: int = 0, seed_used: int | None = None) -> None:
        """Replace the fields with saved ones, e.g. from `snapshot()`. Resets first if needed.
        seed_used records the seed the saved fields were originally generated with."""
        u = np.asarray(u, dtype=np.float64)
        v = np.asarray(v, dtype=np.float64)
        if u.ndim != 2 or u.shape != v.shape:
            raise ConfigurationError(f"restore expects two equal (height, width) arrays, got {u.shape} and {v.shape}")
        if self.status is not Status.UNINITIALIZED:
            self.reset()
        height, width = u.shape
        self._allocate(width, height)
        self._upload(u, v)
        self.step_count = int(step_count)
        self.seed_used = seed_used
        logger.info("Restored %dx%d grid at step %d", width, height, self.step_count)

    def reset(self) -> None:
        """Drop the fields (and any fault). The next step re-initializes with the configured seed."""
        previous = self.status
        self._release()
        if previous is not Status.UNINITIALIZED:
            logger.info("Simulation reset (was %s)", previous.value)

    def close(self) -> None:
        self.reset()
        self.backend.close()

    def __enter__(self) -> "SimulationState":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _allocate(self, width: int, height: int) -> None:
        validate_dimensions(width, height, self.tile_size)
        if self._fixed_params is not None:
            params = self._fixed_params
        else:
            params = Params.for_grid(width, height, **self._param_overrides)
        params.check_stability()
        self.width, self.height, self.params = int(width), int(height), params

    def _upload(self, u: np.ndarray, v: np.ndarray) -> None:
        try:
            self._u = self.backend.to_resident(u)
            self._v = self.backend.to_resident(v)
            self._u_next = self.backend.empty_like(self._u)
            self._v_next = self.backend.empty_like(self._v)
        except ResourceError:
            self._fault("allocation failed")
            raise
        self.status = Status.READY

    def _fault(self, reason: str) -> None:
        self._u = self._v = self._u_next = self._v_next = None
        self.status = Status.FAULTED
        logger.error("Simulation faulted at step %d: %s. Call reset() before stepping again.", self.step_count, reason)

    # --- stepping ---

    def step(self, width: int, height: int, output_buffer) -> None:
        """
        Advance one explicit-Euler step and copy U into output_buffer (width*height floats).
        The first call initializes the grid; later calls must pass the same width and height.
        """
        if self.status is Status.FAULTED:
            raise ExecutionFault("simulation faulted earlier; call reset() before stepping again")
        if self.status is Status.UNINITIALIZED:
            validate_dimensions(width, height, self.tile_size)
            out = _output_view(output_buffer, width, height)
            self.initialize(width, height)
        else:
            if (width, height) != (self.width, self.height):
                raise ConfigurationError(
                    f"grid is {self.width}x{self.height}, got step({width}, {height}); "
                    "dimensions cannot change without reset()"
                )
            out = _output_view(output_buffer, width, height)
        self.advance()
        self.backend.to_local(self._u, out)

    def advance(self, steps: int = 1) -> None:
        """Run steps updates without copying anything out. The state must be READY."""
        if self.status is not Status.READY:
            if self.status is Status.FAULTED:
                raise ExecutionFault("simulation faulted earlier; call reset() before stepping again")
            raise ConfigurationError("simulation is not initialized")
        for _ in range(steps):
            kernel = partial(react_diffuse, self._u, self._v, self._u_next, self._v_next, self.params)
            try:
                self.backend.run(kernel, self.width, self.height)
            except SimulationError as e:
                self._fault(str(e))
                raise
            except Exception as e:
                self._fault(repr(e))
                raise ExecutionFault(f"{self.backend.name} backend raised {e!r}") from e
            # Every tile has finished: the back buffers now hold step N+1.
            self._u, self._u_next = self._u_next, self._u
            self._v, self._v_next = self._v_next, self._v
            self.step_count += 1

    # --- read access ---

    @property
    def u(self) -> np.ndarray:
        return self._readonly(self._u)

    @property
    def v(self) -> np.ndarray:
        return self._readonly(self._v)

    def _readonly(self, field: np.ndarray | None) -> np.ndarray:
        if field is None:
            raise ConfigurationError(f"no fields while {self.status.value}")
        view = field.view()
        view.flags.writeable = False
        return view

    def snapshot(self) -> dict:
        """Copies of the fields plus step count, in the layout config.save_config expects."""
        return {"u": np.array(self.u), "v": np.array(self.v), "step_count": self.step_count}

    def __repr__(self) -> str:
        size = f"{self.width}x{self.height}" if self.width else "unsized"
        return f"SimulationState({size}, {self.status.value}, step={self.step_count}, backend={self.backend.name})"
