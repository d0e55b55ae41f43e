"""Agents and the population arena.

Agents refer to each other by integer id, never by object reference.
The Population owns every Agent and is indexed by that id, so any
per-agent array (locations, states) lines up with it index for index.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from hospital_abm.config import ConfigError
from hospital_abm.types import INFECTED_STATES, N_STATES, DiseaseState

if TYPE_CHECKING:
    from hospital_abm.virus import Virus


class Agent:
    """One simulated individual.

    The pathogen invariant is enforced here: an agent in an infected
    state always carries a virus, a susceptible agent never does.
    """

    def __init__(self, agent_id: int, neighbors: Iterable[int] = ()):
        self.id = int(agent_id)
        self.neighbors: Tuple[int, ...] = tuple(int(n) for n in neighbors)
        self.state = DiseaseState.SUSCEPTIBLE
        self.virus: Optional["Virus"] = None

    def __repr__(self) -> str:
        return (f"Agent(id={self.id}, state={self.state.name}, "
                f"n_neighbors={len(self.neighbors)})")

    @property
    def is_infected(self) -> bool:
        return self.state in INFECTED_STATES

    def set_virus(self, virus: "Virus", state: DiseaseState) -> None:
        """Attach a pathogen and move into an infected state."""
        state = DiseaseState(state)
        if state not in INFECTED_STATES:
            raise ValueError(
                f"Agent {self.id}: set_virus needs an infected state, got {state.name}"
            )
        if virus is None:
            raise ValueError(f"Agent {self.id}: cannot attach a null virus")
        self.virus = virus
        self.state = state

    def rm_virus(self) -> None:
        """Detach the pathogen; the agent becomes susceptible again."""
        self.virus = None
        self.state = DiseaseState.SUSCEPTIBLE

    def change_state(self, state: DiseaseState) -> None:
        """Move between infected states, keeping the attached pathogen."""
        state = DiseaseState(state)
        if state not in INFECTED_STATES:
            raise ValueError(
                f"Agent {self.id}: use rm_virus() to become susceptible"
            )
        if self.virus is None:
            raise ValueError(
                f"Agent {self.id}: cannot enter {state.name} without a virus"
            )
        self.state = state

    def reset(self) -> None:
        self.virus = None
        self.state = DiseaseState.SUSCEPTIBLE


class Population:
    """Arena of agents indexed by id (0 .. n-1)."""

    def __init__(self, agents: Sequence[Agent]):
        self._agents: List[Agent] = list(agents)
        for idx, agent in enumerate(self._agents):
            if agent.id != idx:
                raise ValueError(
                    f"Agent at position {idx} has id {agent.id}; ids must be 0..n-1"
                )
        n = len(self._agents)
        for agent in self._agents:
            for nb in agent.neighbors:
                if not 0 <= nb < n:
                    raise ValueError(
                        f"Agent {agent.id} has neighbour {nb} outside 0..{n - 1}"
                    )

    @classmethod
    def from_edges(
        cls,
        n_agents: int,
        edges: Iterable[Tuple[int, int]],
        directed: bool = False,
    ) -> "Population":
        """Build a population from an edge list.

        Neighbour order is edge insertion order. Undirected edges are
        added to both endpoints; duplicates and self-loops are dropped.
        """
        if n_agents < 0:
            raise ConfigError(f"n_agents must be non-negative, got {n_agents}")
        adjacency: List[List[int]] = [[] for _ in range(n_agents)]

        def _add(u: int, v: int) -> None:
            if u != v and v not in adjacency[u]:
                adjacency[u].append(v)

        for u, v in edges:
            u, v = int(u), int(v)
            if not (0 <= u < n_agents and 0 <= v < n_agents):
                raise ValueError(f"Edge ({u}, {v}) outside 0..{n_agents - 1}")
            _add(u, v)
            if not directed:
                _add(v, u)
        return cls([Agent(i, nbrs) for i, nbrs in enumerate(adjacency)])

    def __len__(self) -> int:
        return len(self._agents)

    def __getitem__(self, agent_id: int) -> Agent:
        return self._agents[agent_id]

    def __iter__(self) -> Iterator[Agent]:
        return iter(self._agents)

    @property
    def n_edges(self) -> int:
        """Number of directed adjacency entries (2× undirected edges)."""
        return sum(len(a.neighbors) for a in self._agents)

    def reset(self) -> None:
        """Return every agent to susceptible with no pathogen."""
        for agent in self._agents:
            agent.reset()

    def states(self) -> np.ndarray:
        """Current state of every agent, indexed by id."""
        return np.fromiter((a.state for a in self._agents),
                           dtype=np.int8, count=len(self._agents))

    def state_counts(self) -> np.ndarray:
        """Number of agents in each DiseaseState."""
        return np.bincount(self.states(), minlength=N_STATES).astype(np.int64)

    def ids_in_state(self, state: DiseaseState) -> np.ndarray:
        return np.flatnonzero(self.states() == int(state))
