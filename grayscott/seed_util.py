"""Reproducible random source for the initial perturbation. Seed -1 (or None) = new random seed
each call; the seed actually used is returned so a run can be replayed."""

import random

import numpy as np

from grayscott.errors import ConfigurationError


def resolve_seed(seed: int | None) -> int:
    """Return seed unchanged, or pick a fresh one in [0, 2**31 - 1] when seed is None or -1."""
    if seed is None or seed == -1:
        return random.randint(0, 2**31 - 1)
    if seed < 0:
        raise ConfigurationError(f"seed must be non-negative or -1, got {seed}")
    return int(seed)


def make_rng(seed: int | None) -> tuple[np.random.Generator, int]:
    """
    Return (generator, seed_used). The generator is owned by one SimulationState and
    drawn from only while (re)initializing its fields.
    """
    seed_used = resolve_seed(seed)
    return np.random.default_rng(seed_used), seed_used
