"""Configuration system for hospital_abm.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → command-line overrides

Each YAML top-level key maps onto one dataclass section. Unknown keys are
ignored so older config files keep loading.

Named model parameters ("Prob hospitalization", "Prob recovery",
"Discharge infected") live in the `parameters` section and are exposed to
state handlers through `ParametersSection.as_named()`.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml


class ConfigError(ValueError):
    """Invalid model setup detected before a run starts."""


# Parameter-store names read by the state handlers.
PAR_HOSPITALIZATION = "Prob hospitalization"
PAR_RECOVERY = "Prob recovery"
PAR_DISCHARGE = "Discharge infected"

VALID_SAMPLERS = ("first_success", "uniform")

# Round-off allowed when probabilities are summed (parameter check and roulette).
PROB_SUM_TOL = 1e-12


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Run length and master seed."""
    n_steps: int = 100
    seed: int = 1231


@dataclass
class PopulationSection:
    """Population size and small-world contact graph.

    The graph is a Watts-Strogatz ring lattice: each agent is joined to
    its k nearest ring neighbours, and each edge is rewired with
    probability p_rewire.
    """
    n_agents: int = 1000
    k: int = 4                 # Mean degree (ring neighbours per agent)
    p_rewire: float = 0.1      # Rewiring probability
    graph_seed: int = 42       # Seed for graph construction only


@dataclass
class VirusSection:
    """Pathogen definition and initial seeding."""
    name: str = "MRSA"
    prob_infecting: float = 0.1    # Carried on the pathogen; not read by the default sampler
    prob_recovery: float = 0.0
    prevalence: float = 0.01       # Fraction of agents infected at step 0


@dataclass
class ParametersSection:
    """Named per-step transition probabilities."""
    prob_hospitalization: float = 0.1
    prob_recovery: float = 0.0
    discharge_infected: float = 0.1

    def as_named(self) -> Dict[str, float]:
        """Map to the parameter-store names used by the handlers."""
        return {
            PAR_HOSPITALIZATION: float(self.prob_hospitalization),
            PAR_RECOVERY: float(self.prob_recovery),
            PAR_DISCHARGE: float(self.discharge_infected),
        }


@dataclass
class TransmissionSection:
    """Infection sampler selection.

    sampler: "first_success": scan neighbours in order, Bernoulli(0.3)
                               per same-location infected neighbour,
                               first success is the infector
             "uniform":       pick one same-location infected neighbour
                               uniformly at random; infection certain
    """
    sampler: str = "first_success"


@dataclass
class OutputSection:
    """Report control."""
    show_events: bool = True
    max_events: Optional[int] = None   # None = list every event


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level keys.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    population: PopulationSection = field(default_factory=PopulationSection)
    virus: VirusSection = field(default_factory=VirusSection)
    parameters: ParametersSection = field(default_factory=ParametersSection)
    transmission: TransmissionSection = field(default_factory=TransmissionSection)
    output: OutputSection = field(default_factory=OutputSection)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


_SECTION_MAP = {
    'simulation': SimulationSection,
    'population': PopulationSection,
    'virus': VirusSection,
    'parameters': ParametersSection,
    'transmission': TransmissionSection,
    'output': OutputSection,
}


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections = {}
    for key, cls in _SECTION_MAP.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


# ═══════════════════════════════════════════════════════════════════════
# VALIDATION
# ═══════════════════════════════════════════════════════════════════════

def check_probability(name: str, value: float) -> None:
    """Raise ConfigError unless 0 <= value <= 1."""
    if not 0.0 <= value <= 1.0:
        raise ConfigError(f"{name} must be in [0, 1], got {value}")


def check_parameters(params: Dict[str, float]) -> None:
    """Validate a named parameter store.

    All three handler parameters must be present and be probabilities.
    The Infected handler feeds hospitalization and recovery into a single
    roulette draw, so their sum may not exceed 1.
    """
    for name in (PAR_HOSPITALIZATION, PAR_RECOVERY, PAR_DISCHARGE):
        if name not in params:
            raise ConfigError(f"Missing model parameter '{name}'")
    for name, value in params.items():
        check_probability(f"parameter '{name}'", value)
    total = params[PAR_HOSPITALIZATION] + params[PAR_RECOVERY]
    if total > 1.0 + PROB_SUM_TOL:
        raise ConfigError(
            f"'{PAR_HOSPITALIZATION}' + '{PAR_RECOVERY}' must be <= 1 "
            f"(roulette over both outcomes), got {total}"
        )


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises ConfigError on failure."""
    sim = config.simulation
    if sim.n_steps < 0:
        raise ConfigError(f"simulation.n_steps must be >= 0, got {sim.n_steps}")
    if sim.seed < 0:
        raise ConfigError("simulation.seed must be non-negative")

    pop = config.population
    if pop.n_agents < 0:
        raise ConfigError(
            f"population.n_agents must be non-negative, got {pop.n_agents}"
        )
    if pop.n_agents < 2:
        raise ConfigError(
            f"population.n_agents must be >= 2 to form a contact graph, "
            f"got {pop.n_agents}"
        )
    if pop.k < 2 or pop.k >= pop.n_agents:
        raise ConfigError(
            f"population.k must satisfy 2 <= k < n_agents "
            f"({pop.n_agents}), got {pop.k}"
        )
    check_probability("population.p_rewire", pop.p_rewire)
    if pop.graph_seed < 0:
        raise ConfigError("population.graph_seed must be non-negative")

    v = config.virus
    check_probability("virus.prob_infecting", v.prob_infecting)
    check_probability("virus.prob_recovery", v.prob_recovery)
    check_probability("virus.prevalence", v.prevalence)

    check_parameters(config.parameters.as_named())

    if config.transmission.sampler not in VALID_SAMPLERS:
        raise ConfigError(
            f"transmission.sampler must be one of {VALID_SAMPLERS}, "
            f"got '{config.transmission.sampler}'"
        )

    if config.output.max_events is not None and config.output.max_events < 0:
        raise ConfigError("output.max_events must be >= 0 or null")


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → overrides.
    Each layer overrides only the fields it specifies.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML.
        overrides: Optional nested dict applied last (e.g. --steps, --seed).

    Returns:
        Validated SimulationConfig.

    Raises:
        FileNotFoundError: If base_path (or a given scenario_path) doesn't exist.
        ConfigError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if not scenario_path.exists():
            raise FileNotFoundError(f"Scenario file not found: {scenario_path}")
        with open(scenario_path) as f:
            scenario = yaml.safe_load(f) or {}
        deep_merge(config_dict, scenario)

    if overrides is not None:
        deep_merge(config_dict, overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = SimulationConfig()
    validate_config(config)
    return config
