"""Per-state update handlers.

One handler per DiseaseState, each with signature (agent, model) → None.
Every handler first reassigns the agent's location for this step, then
decides a transition and requests it through model.queue_transition().
Requested transitions are committed by the model at the end of the
step.

Draws per invocation, in order:

  SUSCEPTIBLE            location; one per eligible neighbour until the
                         first success; hospitalization (only on infection)
  INFECTED               location; roulette
  INFECTED_HOSPITALIZED  recovery; discharge (only if not recovered)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Dict

from hospital_abm.config import PAR_DISCHARGE, PAR_HOSPITALIZATION, PAR_RECOVERY
from hospital_abm.sampling import roulette
from hospital_abm.types import N_LOCATIONS, DiseaseState, Location

if TYPE_CHECKING:
    from hospital_abm.agents import Agent
    from hospital_abm.model import Model

Handler = Callable[["Agent", "Model"], None]

# Roulette outcomes of the INFECTED handler
OUTCOME_NONE = -1
OUTCOME_HOSPITALIZE = 0
OUTCOME_RECOVER = 1


# ═══════════════════════════════════════════════════════════════════════
# LOCATION POLICY
# ═══════════════════════════════════════════════════════════════════════

def draw_susceptible_location(model: "Model") -> Location:
    """Community, Hospital or Home with equal probability."""
    return Location(int(model.runif() * N_LOCATIONS))


def draw_infected_location(model: "Model") -> Location:
    """Community or Home, 50/50. Never Hospital."""
    return Location.COMMUNITY if model.runif() < 0.5 else Location.HOME


# ═══════════════════════════════════════════════════════════════════════
# HANDLERS
# ═══════════════════════════════════════════════════════════════════════

def update_susceptible(agent: "Agent", model: "Model") -> None:
    """Move, then try to catch the disease from a co-located neighbour."""
    if agent.state != DiseaseState.SUSCEPTIBLE:
        return

    location = draw_susceptible_location(model)
    model.locations[agent.id] = location

    infector = model.sampler(agent, model)
    if infector is None:
        return

    model.infection_log.record(model.current_step, agent.id, infector.id, location)
    if model.par(PAR_HOSPITALIZATION) > model.runif():
        model.queue_transition(agent, DiseaseState.INFECTED_HOSPITALIZED, infector.virus)
    else:
        model.queue_transition(agent, DiseaseState.INFECTED, infector.virus)


def update_infected(agent: "Agent", model: "Model") -> None:
    """Move between Community and Home; maybe hospitalize or recover."""
    model.locations[agent.id] = draw_infected_location(model)

    probs = [model.par(PAR_HOSPITALIZATION), model.par(PAR_RECOVERY)]
    outcome = roulette(probs, model.runif)

    if outcome == OUTCOME_HOSPITALIZE:
        model.queue_transition(agent, DiseaseState.INFECTED_HOSPITALIZED)
    elif outcome == OUTCOME_RECOVER:
        model.queue_transition(agent, DiseaseState.SUSCEPTIBLE)


def update_infected_hospitalized(agent: "Agent", model: "Model") -> None:
    """Stay in hospital; recover, or else maybe get discharged infected."""
    model.locations[agent.id] = Location.HOSPITAL

    if model.par(PAR_RECOVERY) > model.runif():
        model.queue_transition(agent, DiseaseState.SUSCEPTIBLE)
    elif model.par(PAR_DISCHARGE) > model.runif():
        model.queue_transition(agent, DiseaseState.INFECTED)


DEFAULT_HANDLERS: Dict[DiseaseState, Handler] = {
    DiseaseState.SUSCEPTIBLE: update_susceptible,
    DiseaseState.INFECTED: update_infected,
    DiseaseState.INFECTED_HOSPITALIZED: update_infected_hospitalized,
}
