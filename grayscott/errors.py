"""Typed errors raised by the simulation core. None of them is recoverable mid-run."""


class SimulationError(Exception):
    """Base class for every error the core reports to its caller."""


class ConfigurationError(SimulationError, ValueError):
    """Invalid dimensions, parameters or output buffer. Raised before any buffer is touched."""


class ResourceError(SimulationError, MemoryError):
    """Field buffers could not be allocated."""


class ExecutionFault(SimulationError, RuntimeError):
    """The backend failed while running a step, or stepping was attempted after a fault."""
