"""Seeded random source for reproducible simulations.

One PCG64 stream drives every stochastic decision of a run (initial
locations, pathogen seeding, every handler draw). Reproducing a run
bit-for-bit requires the same seed AND the same draw order, so the
stream is never shared with anything outside the model.

Graph construction takes its own integer seed (see network.py) so that
the contact graph can be held fixed while the run seed varies.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np


def make_rng(seed: int) -> np.random.Generator:
    """Create the model's uniform stream.

    Args:
        seed: Non-negative integer seed.

    Returns:
        numpy Generator backed by PCG64.

    Raises:
        ValueError: If seed is negative.
    """
    if seed < 0:
        raise ValueError(f"seed must be non-negative, got {seed}")
    return np.random.Generator(np.random.PCG64(seed))


def rng_state_snapshot(rng: np.random.Generator) -> Dict[str, Any]:
    """Capture the full bit-generator state (for in-memory replay)."""
    return rng.bit_generator.state


def restore_rng_state(rng: np.random.Generator, state: Dict[str, Any]) -> None:
    """Restore a state captured by rng_state_snapshot().

    Raises:
        ValueError: If the state belongs to a different bit generator.
    """
    expected = type(rng.bit_generator).__name__
    got = state.get('bit_generator')
    if got != expected:
        raise ValueError(
            f"Cannot restore {got!r} state into a {expected} generator"
        )
    rng.bit_generator.state = state
