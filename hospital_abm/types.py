"""Core data types for hospital_abm.

This module is the single source of truth for:
  - DiseaseState and Location enumerations (values are array indices)
  - Display names used by reports and plots
  - InfectionEvent, the record appended to the infection log

All modules import these types from here.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Tuple


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class DiseaseState(IntEnum):
    """Epidemic compartments.

    SUSCEPTIBLE            → INFECTED | INFECTED_HOSPITALIZED  (transmission)
    INFECTED               → INFECTED_HOSPITALIZED | SUSCEPTIBLE
    INFECTED_HOSPITALIZED  → SUSCEPTIBLE (recovery) | INFECTED (discharge)

    Recovery confers no immunity: recovered agents are susceptible again.
    """
    SUSCEPTIBLE           = 0
    INFECTED              = 1
    INFECTED_HOSPITALIZED = 2


class Location(IntEnum):
    """Where an agent spends the current step."""
    COMMUNITY = 0
    HOSPITAL  = 1
    HOME      = 2


N_STATES = len(DiseaseState)
N_LOCATIONS = len(Location)

INFECTED_STATES = frozenset({
    DiseaseState.INFECTED,
    DiseaseState.INFECTED_HOSPITALIZED,
})

STATE_NAMES = {
    DiseaseState.SUSCEPTIBLE: "Susceptible",
    DiseaseState.INFECTED: "Infected",
    DiseaseState.INFECTED_HOSPITALIZED: "Infected (hospitalized)",
}

LOCATION_NAMES = {
    Location.COMMUNITY: "Community",
    Location.HOSPITAL: "Hospital",
    Location.HOME: "Home",
}


# ═══════════════════════════════════════════════════════════════════════
# INFECTION EVENTS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class InfectionEvent:
    """One successful transmission.

    Attributes:
        step: Step (0-based) during which the transmission happened.
        susceptible_id: Agent that became infected.
        infector_id: Neighbour credited with the transmission.
        location: Shared location where it happened.
    """
    step: int
    susceptible_id: int
    infector_id: int
    location: Location

    def as_tuple(self) -> Tuple[int, int, int]:
        """(susceptible_id, infector_id, location) as plain ints."""
        return (self.susceptible_id, self.infector_id, int(self.location))
