"""Pathogen definition and initial seeding.

A Virus is shared by reference: every agent infected through a chain of
transmissions carries the same object as its seed case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from hospital_abm.config import ConfigError, VirusSection, check_probability
from hospital_abm.types import INFECTED_STATES, DiseaseState

if TYPE_CHECKING:
    from hospital_abm.agents import Population


@dataclass(eq=False)
class Virus:
    """A transmissible pathogen.

    prob_infecting and prob_recovery describe the pathogen itself. The
    default first-success sampler uses its own fixed contact probability
    and the handlers read recovery from the model parameters, so these
    two values are informational for that configuration.
    """
    name: str
    prob_infecting: float = 0.1
    prob_recovery: float = 0.0
    prevalence: float = 0.01
    init_state: DiseaseState = DiseaseState.INFECTED

    def __post_init__(self):
        check_probability(f"virus '{self.name}' prob_infecting", self.prob_infecting)
        check_probability(f"virus '{self.name}' prob_recovery", self.prob_recovery)
        check_probability(f"virus '{self.name}' prevalence", self.prevalence)
        self.init_state = DiseaseState(self.init_state)
        if self.init_state not in INFECTED_STATES:
            raise ConfigError(
                f"virus '{self.name}' init_state must be an infected state, "
                f"got {self.init_state.name}"
            )


def make_virus(cfg: VirusSection) -> Virus:
    """Build a Virus from its configuration section."""
    return Virus(
        name=cfg.name,
        prob_infecting=cfg.prob_infecting,
        prob_recovery=cfg.prob_recovery,
        prevalence=cfg.prevalence,
    )


def n_initial_cases(prevalence: float, n_agents: int) -> int:
    """Number of agents seeded: floor(prevalence × n_agents)."""
    return int(np.floor(prevalence * n_agents))


def distribute_randomly(
    virus: Virus,
    population: "Population",
    rng: np.random.Generator,
) -> np.ndarray:
    """Seed the virus on distinct, uniformly chosen susceptible agents.

    Args:
        virus: Pathogen to attach.
        population: Agents to seed (already reset).
        rng: The model stream.

    Returns:
        Sorted array of seeded agent ids.
    """
    candidates = np.array(
        [a.id for a in population if a.state == DiseaseState.SUSCEPTIBLE],
        dtype=np.int64,
    )
    n = min(n_initial_cases(virus.prevalence, len(population)), candidates.size)
    if n == 0:
        return np.empty(0, dtype=np.int64)
    chosen = np.sort(rng.choice(candidates, size=n, replace=False))
    for agent_id in chosen:
        population[int(agent_id)].set_virus(virus, virus.init_state)
    return chosen
