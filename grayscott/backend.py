"""
Execution backends. A backend owns the compute-resident copies of the fields and runs a
region kernel across the grid. run() returns only after every region has been written,
so callers may swap buffers or copy results out as soon as it returns.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable

import numpy as np

from grayscott.constants import TILE_SIZE
from grayscott.errors import ConfigurationError, ExecutionFault, ResourceError

logger = logging.getLogger(__name__)

# kernel(rows, cols) writes the step result for field[rows, cols].
Kernel = Callable[[slice, slice], None]


def tiles(width: int, height: int, tile_size: int = TILE_SIZE) -> list[tuple[slice, slice]]:
    """(rows, cols) of every tile_size x tile_size tile, row-major."""
    return [
        (slice(y, y + tile_size), slice(x, x + tile_size))
        for y in range(0, height, tile_size)
        for x in range(0, width, tile_size)
    ]


class Backend:
    """Base backend: plain numpy arrays as resident buffers."""

    name = "base"

    def __init__(self, tile_size: int = TILE_SIZE) -> None:
        self.tile_size = tile_size

    def to_resident(self, local: np.ndarray) -> np.ndarray:
        """Take ownership of a filled local buffer. The caller must not use local afterwards."""
        try:
            return np.array(local, dtype=np.float64, order="C", copy=True)
        except MemoryError as e:
            raise ResourceError(f"cannot allocate resident buffer of shape {local.shape}") from e

    def empty_like(self, resident: np.ndarray) -> np.ndarray:
        try:
            return np.empty_like(resident)
        except MemoryError as e:
            raise ResourceError(f"cannot allocate resident buffer of shape {resident.shape}") from e

    def to_local(self, resident: np.ndarray, out: np.ndarray) -> None:
        """Copy a resident buffer into a caller-visible one of the same size."""
        out[...] = resident.reshape(out.shape)

    def run(self, kernel: Kernel, width: int, height: int) -> None:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def _call(self, kernel: Kernel, rows: slice, cols: slice) -> None:
        # Overflow or NaN creation inside a kernel is a runtime fault, not a silent inf.
        with np.errstate(over="raise", invalid="raise", divide="raise"):
            kernel(rows, cols)


class NumpyBackend(Backend):
    """One vectorized kernel call over the whole grid."""

    name = "numpy"

    def run(self, kernel: Kernel, width: int, height: int) -> None:
        try:
            self._call(kernel, slice(None), slice(None))
        except Exception as e:
            raise ExecutionFault(f"{self.name} backend failed during step: {e}") from e


class TiledBackend(Backend):
    """One kernel call per tile on a thread pool. numpy releases the GIL inside array arithmetic."""

    name = "tiled"

    def __init__(self, tile_size: int = TILE_SIZE, max_workers: int | None = None) -> None:
        super().__init__(tile_size)
        self.max_workers = max_workers or min(32, (os.cpu_count() or 1) + 4)
        self._executor: ThreadPoolExecutor | None = None

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="grayscott-tile")
            logger.debug("Started tile pool with %d workers (tile size %d)", self.max_workers, self.tile_size)
        return self._executor

    def run(self, kernel: Kernel, width: int, height: int) -> None:
        pool = self._pool()
        futures = [pool.submit(self._call, kernel, rows, cols) for rows, cols in tiles(width, height, self.tile_size)]
        # Barrier: wait for every tile, even after one failed, so no write is still in flight.
        errors = [f.exception() for f in futures]
        failed = [e for e in errors if e is not None]
        if failed:
            raise ExecutionFault(
                f"{self.name} backend failed in {len(failed)} of {len(futures)} tiles: {failed[0]}"
            ) from failed[0]

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None


BACKENDS = {NumpyBackend.name: NumpyBackend, TiledBackend.name: TiledBackend}


def get_backend(backend: "str | Backend", tile_size: int = TILE_SIZE, **kwargs) -> Backend:
    """Return backend unchanged if it is already a Backend, else construct one by name."""
    if isinstance(backend, Backend):
        return backend
    try:
        cls = BACKENDS[backend]
    except KeyError:
        raise ConfigurationError(f"unknown backend {backend!r}, expected one of {sorted(BACKENDS)}") from None
    return cls(tile_size=tile_size, **kwargs)
