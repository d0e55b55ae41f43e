"""Stochastic primitives: roulette selection, infection samplers, and
the infection log.

Draw discipline: every function here takes its uniforms from the model
(`model.runif()`) one at a time, in a fixed order. Reordering or adding
draws changes every subsequent decision of a seeded run.

Two infection samplers are available and are selected by name:

  first_success  Scan neighbours in adjacency order. Each neighbour that
                 is INFECTED and at the agent's location gets one
                 Bernoulli(CONTACT_INFECTION_PROB) trial; the first
                 success is the infector. Earlier neighbours are more
                 likely to be credited.
  uniform        Collect every INFECTED neighbour at the agent's
                 location and pick one uniformly with a single draw.
                 Infection is certain whenever one exists.

They are not statistically equivalent.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from hospital_abm.config import PROB_SUM_TOL
from hospital_abm.types import N_LOCATIONS, DiseaseState, InfectionEvent, Location

if TYPE_CHECKING:
    from hospital_abm.agents import Agent
    from hospital_abm.model import Model


# Per-contact transmission probability used by the first-success sampler.
# Fixed; the pathogen's own prob_infecting is not read.
CONTACT_INFECTION_PROB = 0.3


# ═══════════════════════════════════════════════════════════════════════
# ROULETTE SELECTION
# ═══════════════════════════════════════════════════════════════════════

def check_roulette_probs(probs: Sequence[float]) -> None:
    """Raise ValueError unless probs are in [0, 1] and sum to <= 1."""
    total = 0.0
    for i, p in enumerate(probs):
        if not 0.0 <= p <= 1.0:
            raise ValueError(f"roulette probability {i} must be in [0, 1], got {p}")
        total += p
    if total > 1.0 + PROB_SUM_TOL:
        raise ValueError(f"roulette probabilities sum to {total} > 1")


def roulette(probs: Sequence[float], runif: Callable[[], float]) -> int:
    """Weighted-interval selection with a 'nothing happens' remainder.

    [0, 1) is split into half-open intervals [Σ_{j<i} p_j, Σ_{j≤i} p_j)
    followed by the remainder [Σ p, 1). One uniform u is drawn.
    Boundaries are the running float sums, so [0.1, 0.2] puts u = 0.3 in
    interval 1 (0.1 + 0.2 > 0.3 in binary floating point).

    Args:
        probs: Outcome probabilities p_0..p_{k-1}.
        runif: Uniform source on [0, 1).

    Returns:
        Index of the interval containing u, or -1 for the remainder.
    """
    probs = [float(p) for p in probs]
    check_roulette_probs(probs)
    u = runif()
    upper = 0.0
    for i, p in enumerate(probs):
        upper += p
        if u < upper:
            return i
    return -1


# ═══════════════════════════════════════════════════════════════════════
# INFECTION SAMPLERS
# ═══════════════════════════════════════════════════════════════════════

def is_eligible_infector(neighbor: "Agent", location: Location, model: "Model") -> bool:
    """Infected (not hospitalized) and currently at `location`."""
    return (neighbor.state == DiseaseState.INFECTED
            and model.locations[neighbor.id] == location)


def eligible_infectors(agent: "Agent", model: "Model") -> List["Agent"]:
    """Same-location INFECTED neighbours, in adjacency order."""
    location = model.locations[agent.id]
    population = model.population
    return [
        population[nb] for nb in agent.neighbors
        if is_eligible_infector(population[nb], location, model)
    ]


def sample_first_success(agent: "Agent", model: "Model") -> Optional["Agent"]:
    """Sequential Bernoulli scan; returns the first successful infector."""
    location = model.locations[agent.id]
    population = model.population
    for nb in agent.neighbors:
        neighbor = population[nb]
        if not is_eligible_infector(neighbor, location, model):
            continue
        if model.runif() < CONTACT_INFECTION_PROB:
            return neighbor
    return None


def sample_uniform(agent: "Agent", model: "Model") -> Optional["Agent"]:
    """Uniform pick among all eligible infectors (one draw, or none)."""
    candidates = eligible_infectors(agent, model)
    if not candidates:
        return None
    idx = int(model.runif() * len(candidates))
    return candidates[idx]


SAMPLERS: Dict[str, Callable[["Agent", "Model"], Optional["Agent"]]] = {
    'first_success': sample_first_success,
    'uniform': sample_uniform,
}


def get_sampler(name: str) -> Callable[["Agent", "Model"], Optional["Agent"]]:
    """Look up a sampler by name.

    Raises:
        KeyError: If no sampler has that name.
    """
    if name not in SAMPLERS:
        raise KeyError(
            f"Unknown infection sampler '{name}'. Available: {sorted(SAMPLERS)}"
        )
    return SAMPLERS[name]


# ═══════════════════════════════════════════════════════════════════════
# INFECTION LOG
# ═══════════════════════════════════════════════════════════════════════

class InfectionLog:
    """Append-only, chronological record of transmissions.

    Owned by one model run; reset() starts a fresh log for the next run.
    """

    def __init__(self):
        self._events: List[InfectionEvent] = []

    def record(
        self,
        step: int,
        susceptible_id: int,
        infector_id: int,
        location: Location,
    ) -> InfectionEvent:
        """Append one transmission and return the stored event."""
        event = InfectionEvent(
            step=int(step),
            susceptible_id=int(susceptible_id),
            infector_id=int(infector_id),
            location=Location(location),
        )
        self._events.append(event)
        return event

    def reset(self) -> None:
        self._events = []

    def __len__(self) -> int:
        return len(self._events)

    def __iter__(self) -> Iterator[InfectionEvent]:
        return iter(self._events)

    def __getitem__(self, idx: int) -> InfectionEvent:
        return self._events[idx]

    @property
    def events(self) -> tuple:
        """Immutable view of all events so far."""
        return tuple(self._events)

    def as_tuples(self) -> List[tuple]:
        """[(susceptible_id, infector_id, location), ...] as plain ints."""
        return [e.as_tuple() for e in self._events]

    def as_array(self) -> np.ndarray:
        """(n_events, 4) int64 array: step, susceptible, infector, location."""
        if not self._events:
            return np.empty((0, 4), dtype=np.int64)
        return np.array(
            [(e.step, e.susceptible_id, e.infector_id, int(e.location))
             for e in self._events],
            dtype=np.int64,
        )

    def counts_by_location(self) -> np.ndarray:
        """Number of transmissions at each Location."""
        locs = np.fromiter((e.location for e in self._events),
                           dtype=np.int64, count=len(self._events))
        return np.bincount(locs, minlength=N_LOCATIONS)

    def counts_by_step(self, n_steps: int) -> np.ndarray:
        """New infections per step for steps 0..n_steps-1."""
        steps = np.fromiter((e.step for e in self._events),
                            dtype=np.int64, count=len(self._events))
        return np.bincount(steps, minlength=n_steps)[:n_steps]
