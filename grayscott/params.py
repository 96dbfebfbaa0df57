"""Gray-Scott model parameters. Du and Dv default to the area-scaled rates of the grid."""

import math
import warnings
from dataclasses import dataclass, fields, replace

from grayscott.constants import (
    AREA_UNIT,
    DT,
    DU_PER_AREA,
    DV_PER_AREA,
    DX,
    FEED,
    KILL,
    STABILITY_LIMIT,
)
from grayscott.errors import ConfigurationError


@dataclass(frozen=True)
class Params:
    """
    Constants of one explicit-Euler step:

        dU/dt = du * Lap(U) - U*V**2 + feed * (1 - U)
        dV/dt = dv * Lap(V) + U*V**2 - (feed + kill) * V

    The default diffusion rates scale with the grid area, so du and dv must be given;
    `Params.for_grid(width, height)` fills them in.
    """

    dt: float = DT
    dx: float = DX
    feed: float = FEED
    kill: float = KILL
    du: float | None = None
    dv: float | None = None

    def __post_init__(self) -> None:
        if self.du is None or self.dv is None:
            raise ConfigurationError("du and dv depend on the grid size; use Params.for_grid(width, height)")
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
                raise ConfigurationError(f"{f.name} must be a finite number, got {value!r}")
            if value < 0:
                raise ConfigurationError(f"{f.name} must be non-negative, got {value}")
        if self.dt == 0 or self.dx == 0:
            raise ConfigurationError(f"dt and dx must be positive, got dt={self.dt}, dx={self.dx}")

    @classmethod
    def for_grid(
        cls,
        width: int,
        height: int,
        *,
        dt: float = DT,
        dx: float = DX,
        feed: float = FEED,
        kill: float = KILL,
        du: float | None = None,
        dv: float | None = None,
    ) -> "Params":
        """Params for a width x height grid; du/dv left as None scale with width*height/100."""
        area = width * height / AREA_UNIT
        return cls(
            dt=dt,
            dx=dx,
            feed=feed,
            kill=kill,
            du=DU_PER_AREA * area if du is None else du,
            dv=DV_PER_AREA * area if dv is None else dv,
        )

    def with_values(self, **kwargs) -> "Params":
        return replace(self, **kwargs)

    @property
    def diffusion_number(self) -> float:
        """dt * max(du, dv) / dx**2, the explicit-stencil stability number."""
        return self.dt * max(self.du, self.dv) / self.dx ** 2

    def check_stability(self) -> bool:
        """Warn (RuntimeWarning) and return False if explicit stepping is likely to blow up."""
        number = self.diffusion_number
        if number > STABILITY_LIMIT:
            warnings.warn(
                f"Stability condition violated (dt*D/dx^2 = {number:.3f} > {STABILITY_LIMIT}) with "
                f"dt={self.dt}, dx={self.dx}, du={self.du}, dv={self.dv}. Decrease dt or the grid size.",
                RuntimeWarning,
                stacklevel=2,
            )
            return False
        return True
