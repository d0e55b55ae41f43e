"""Location store: one location tag per agent, indexed by agent id.

The store is shared by every handler in a step and written in place.
An agent processed later in a step therefore sees the new location of
neighbours processed before it and last step's location of neighbours
processed after it. Nothing here buffers writes.
"""

from __future__ import annotations

from typing import Callable

import numpy as np

from hospital_abm.config import ConfigError
from hospital_abm.types import N_LOCATIONS, N_STATES, Location


class LocationStore:
    """Mutable per-agent Location array."""

    def __init__(self, n_agents: int):
        if n_agents < 0:
            raise ConfigError(f"n_agents must be non-negative, got {n_agents}")
        self._tags = np.zeros(n_agents, dtype=np.int8)

    def __len__(self) -> int:
        return self._tags.size

    def __getitem__(self, agent_id: int) -> Location:
        return Location(int(self._tags[agent_id]))

    def __setitem__(self, agent_id: int, location: Location) -> None:
        self._tags[agent_id] = Location(location)

    def as_array(self) -> np.ndarray:
        """Copy of the raw tags (int8, values are Location ints)."""
        return self._tags.copy()

    def randomize(self, runif: Callable[[], float]) -> None:
        """Draw floor(u × 3) for every agent, in id order."""
        for agent_id in range(self._tags.size):
            self._tags[agent_id] = int(runif() * N_LOCATIONS)

    def counts(self) -> np.ndarray:
        """Number of agents at each Location."""
        return np.bincount(self._tags, minlength=N_LOCATIONS).astype(np.int64)

    def counts_by_state(self, states: np.ndarray) -> np.ndarray:
        """(N_STATES, N_LOCATIONS) matrix of agent counts.

        Args:
            states: DiseaseState per agent, aligned with this store.
        """
        states = np.asarray(states)
        if states.shape != self._tags.shape:
            raise ValueError(
                f"states has shape {states.shape}, expected {self._tags.shape}"
            )
        counts = np.zeros((N_STATES, N_LOCATIONS), dtype=np.int64)
        np.add.at(counts, (states.astype(np.intp), self._tags.astype(np.intp)), 1)
        return counts
