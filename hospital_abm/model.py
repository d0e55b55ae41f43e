"""Simulation driver.

A Model owns everything one run mutates: the population's agent states,
the location store, the infection log and the random stream. Each step:

  1. For every agent in ascending id order, call the handler registered
     for the agent's state. Handlers write locations in place and
     request transitions.
  2. Commit requested transitions in request order. Agents entering
     INFECTED_HOSPITALIZED are admitted (location set to Hospital).
  3. Record per-state counts and the step's transition counts.

Because transitions commit at the end of the step, every handler sees
neighbour states as of the start of the step, while locations are seen
with in-place read skew (see locations.py).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

import numpy as np

from hospital_abm.agents import Agent, Population
from hospital_abm.config import ConfigError, SimulationConfig, check_parameters
from hospital_abm.locations import LocationStore
from hospital_abm.network import build_population
from hospital_abm.rng import make_rng
from hospital_abm.sampling import InfectionLog, get_sampler
from hospital_abm.transitions import DEFAULT_HANDLERS, Handler
from hospital_abm.types import N_STATES, DiseaseState, InfectionEvent, Location
from hospital_abm.virus import Virus, distribute_randomly, make_virus

logger = logging.getLogger(__name__)


@dataclass
class PendingTransition:
    """A state change requested by a handler, applied at end of step."""
    agent_id: int
    new_state: DiseaseState
    virus: Optional[Virus] = None


@dataclass
class RunResult:
    """Results from one model run.

    state_history[t] holds the per-state counts after t steps (row 0 is
    the initial condition). transition_counts[i, j] counts agent-steps
    that started in state i and ended in state j.
    """
    n_steps: int
    seed: int
    n_agents: int
    infection_events: Tuple[InfectionEvent, ...]
    final_states: np.ndarray
    final_locations: np.ndarray
    state_location_counts: np.ndarray
    state_history: np.ndarray
    transition_counts: np.ndarray
    seeded_ids: np.ndarray = field(default_factory=lambda: np.empty(0, dtype=np.int64))

    @property
    def n_infections(self) -> int:
        return len(self.infection_events)

    @property
    def final_state_counts(self) -> np.ndarray:
        return self.state_history[-1]

    def transition_probabilities(self) -> np.ndarray:
        """Row-normalized transition_counts (rows never visited are 0)."""
        counts = self.transition_counts.astype(np.float64)
        totals = counts.sum(axis=1, keepdims=True)
        return np.divide(counts, totals, out=np.zeros_like(counts), where=totals > 0)

    def summary(self) -> dict:
        """Plain-Python summary suitable for JSON serialization."""
        final = self.final_state_counts
        return {
            'n_steps': self.n_steps,
            'seed': self.seed,
            'n_agents': self.n_agents,
            'n_seeded': int(self.seeded_ids.size),
            'n_infections': self.n_infections,
            'final_susceptible': int(final[DiseaseState.SUSCEPTIBLE]),
            'final_infected': int(final[DiseaseState.INFECTED]),
            'final_hospitalized': int(final[DiseaseState.INFECTED_HOSPITALIZED]),
            'peak_infected': int(
                self.state_history[:, DiseaseState.INFECTED:].sum(axis=1).max()
            ),
        }


class Model:
    """Network epidemic model with Community / Hospital / Home locations.

    Args:
        population: Agents and their fixed contact graph.
        params: Named probabilities ("Prob hospitalization",
            "Prob recovery", "Discharge infected"). Copied and frozen.
        virus: Pathogen seeded at reset(); None seeds nothing.
        sampler: Infection sampler name ("first_success" or "uniform").
        rng: Uniform source exposing random(). Normally left None and
            created by reset(seed); tests may inject a scripted source.

    Raises:
        ConfigError: On invalid parameters, unknown sampler, or a
            population without any contact edges.
    """

    def __init__(
        self,
        population: Population,
        params: Mapping[str, float],
        virus: Optional[Virus] = None,
        sampler: str = "first_success",
        rng=None,
    ):
        params = {str(k): float(v) for k, v in params.items()}
        check_parameters(params)
        if population.n_edges == 0:
            raise ConfigError(
                f"contact graph is empty ({len(population)} agents, no edges)"
            )
        try:
            self.sampler = get_sampler(sampler)
        except KeyError as exc:
            raise ConfigError(str(exc.args[0])) from exc

        self.population = population
        self.virus = virus
        self.sampler_name = sampler
        self.rng = rng
        self.seed: Optional[int] = None

        self._params = MappingProxyType(params)
        self._handlers: Dict[DiseaseState, Handler] = dict(DEFAULT_HANDLERS)

        self.locations = LocationStore(len(population))
        self.infection_log = InfectionLog()
        self.current_step = 0
        self.seeded_ids = np.empty(0, dtype=np.int64)

        self._pending: List[PendingTransition] = []
        self._history: List[np.ndarray] = []
        self._transition_counts = np.zeros((N_STATES, N_STATES), dtype=np.int64)

    # ── services used by handlers ─────────────────────────────────────

    def runif(self) -> float:
        """One uniform draw on [0, 1) from the model stream."""
        if self.rng is None:
            raise RuntimeError("Model has no random source; call reset(seed) first")
        return float(self.rng.random())

    def par(self, name: str) -> float:
        """Look up a named parameter.

        Raises:
            KeyError: If the parameter was never defined.
        """
        try:
            return self._params[name]
        except KeyError:
            raise KeyError(
                f"Unknown parameter '{name}'. Available: {sorted(self._params)}"
            ) from None

    @property
    def params(self) -> Mapping[str, float]:
        """Read-only view of the parameter store."""
        return self._params

    def add_state(self, state: DiseaseState, handler: Optional[Handler]) -> None:
        """Register (or with None, remove) the handler for a state."""
        state = DiseaseState(state)
        if handler is None:
            self._handlers.pop(state, None)
        else:
            self._handlers[state] = handler

    def handler_for(self, state: DiseaseState) -> Optional[Handler]:
        return self._handlers.get(DiseaseState(state))

    def queue_transition(
        self,
        agent: Agent,
        new_state: DiseaseState,
        virus: Optional[Virus] = None,
    ) -> None:
        """Request a state change, applied when the current step ends.

        Moving to SUSCEPTIBLE detaches the pathogen. Moving into an
        infected state attaches `virus` if given, otherwise keeps the
        agent's current pathogen.
        """
        self._pending.append(
            PendingTransition(agent.id, DiseaseState(new_state), virus)
        )

    # ── run control ───────────────────────────────────────────────────

    def reset(self, seed: int) -> None:
        """Seed the stream and rebuild the initial condition.

        Order of draws: one location per agent in id order, then
        pathogen seeding.
        """
        if seed < 0:
            raise ConfigError(f"seed must be non-negative, got {seed}")
        self.seed = int(seed)
        self.rng = make_rng(self.seed)

        self.population.reset()
        self.infection_log.reset()
        self._pending = []
        self._transition_counts[:] = 0
        self.current_step = 0

        self.locations.randomize(self.runif)
        if self.virus is not None:
            self.seeded_ids = distribute_randomly(self.virus, self.population, self.rng)
        else:
            self.seeded_ids = np.empty(0, dtype=np.int64)

        self._history = [self.population.state_counts()]

    def step(self) -> int:
        """Advance one step. Returns the number of committed transitions."""
        states_before = self.population.states()

        for agent in self.population:
            handler = self._handlers.get(agent.state)
            if handler is not None:
                handler(agent, self)

        n_committed = self.commit_transitions()
        states_after = self.population.states()
        np.add.at(self._transition_counts,
                  (states_before.astype(np.intp), states_after.astype(np.intp)), 1)

        if not self._history:
            self._history.append(np.bincount(states_before, minlength=N_STATES))
        self._history.append(self.population.state_counts())

        logger.debug("step %d: %d transitions, state counts %s",
                     self.current_step, n_committed, self._history[-1].tolist())
        self.current_step += 1
        return n_committed

    def commit_transitions(self) -> int:
        """Apply every pending transition in request order."""
        pending, self._pending = self._pending, []
        for change in pending:
            agent = self.population[change.agent_id]
            if change.new_state == DiseaseState.SUSCEPTIBLE:
                agent.rm_virus()
            elif change.virus is not None:
                agent.set_virus(change.virus, change.new_state)
            else:
                agent.change_state(change.new_state)
            if change.new_state == DiseaseState.INFECTED_HOSPITALIZED:
                self.locations[agent.id] = Location.HOSPITAL
        return len(pending)

    def run(self, n_steps: int, seed: int) -> RunResult:
        """Reset with `seed` and advance `n_steps` steps.

        Raises:
            ConfigError: If n_steps or seed is negative.
        """
        if n_steps < 0:
            raise ConfigError(f"n_steps must be >= 0, got {n_steps}")
        self.reset(seed)
        logger.info(
            "Running %d steps: %d agents, seed=%d, sampler=%s, %d seeded",
            n_steps, len(self.population), seed, self.sampler_name,
            self.seeded_ids.size,
        )
        for _ in range(n_steps):
            self.step()
        result = self.result()
        logger.info("Run finished: %d infections, final state counts %s",
                    result.n_infections, result.final_state_counts.tolist())
        return result

    # ── queries ───────────────────────────────────────────────────────

    def state_location_counts(self) -> np.ndarray:
        """(N_STATES, N_LOCATIONS) counts for the current step."""
        return self.locations.counts_by_state(self.population.states())

    def result(self) -> RunResult:
        """Snapshot of the run so far."""
        history = (np.array(self._history, dtype=np.int64) if self._history
                   else self.population.state_counts()[np.newaxis, :])
        return RunResult(
            n_steps=self.current_step,
            seed=-1 if self.seed is None else self.seed,
            n_agents=len(self.population),
            infection_events=self.infection_log.events,
            final_states=self.population.states(),
            final_locations=self.locations.as_array(),
            state_location_counts=self.state_location_counts(),
            state_history=history,
            transition_counts=self._transition_counts.copy(),
            seeded_ids=self.seeded_ids.copy(),
        )


def build_model(config: SimulationConfig) -> Model:
    """Build population, pathogen, parameters and sampler from a config."""
    population = build_population(config.population)
    return Model(
        population,
        config.parameters.as_named(),
        virus=make_virus(config.virus),
        sampler=config.transmission.sampler,
    )


def run_from_config(config: SimulationConfig) -> Tuple[Model, RunResult]:
    """Build a model and run it for config.simulation.n_steps."""
    model = build_model(config)
    result = model.run(config.simulation.n_steps, config.simulation.seed)
    return model, result
