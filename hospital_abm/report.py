"""Human-readable end-of-run report.

Sections: model summary, infection events (chronological), final
state distribution, empirical transition probabilities, and the
location-wise distribution of states. The text layout is for people;
programs should read RunResult directly.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, List, Optional

import numpy as np

from hospital_abm.types import LOCATION_NAMES, STATE_NAMES, DiseaseState, InfectionEvent, Location

if TYPE_CHECKING:
    from hospital_abm.model import Model, RunResult

_RULE = "=" * 60


def format_infection_events(
    events: Iterable[InfectionEvent],
    max_events: Optional[int] = None,
) -> List[str]:
    """One line per transmission, in log order."""
    events = list(events)
    shown = events if max_events is None else events[:max_events]
    lines = ["Infection Events:"]
    for e in shown:
        lines.append(
            f"Susceptible Agent {e.susceptible_id} infected by Agent "
            f"{e.infector_id} in {LOCATION_NAMES[Location(e.location)]}"
        )
    if len(shown) < len(events):
        lines.append(f"... ({len(events) - len(shown)} more)")
    return lines


def format_model_summary(model: "Model", result: "RunResult") -> List[str]:
    lines = [
        _RULE,
        " Hospital ABM: run summary",
        _RULE,
        f"Population size    : {result.n_agents}",
        f"Contact edges      : {model.population.n_edges // 2}",
        f"Steps              : {result.n_steps}",
        f"Seed               : {result.seed}",
        f"Infection sampler  : {model.sampler_name}",
    ]
    if model.virus is not None:
        lines.append(
            f"Virus              : {model.virus.name} "
            f"(prevalence {model.virus.prevalence:.4f}, {result.seeded_ids.size} seeded)"
        )
    lines.append("Parameters:")
    for name, value in sorted(model.params.items()):
        lines.append(f"  {name:<22} : {value:.4f}")
    return lines


def format_state_distribution(result: "RunResult") -> List[str]:
    initial = result.state_history[0]
    final = result.state_history[-1]
    lines = ["Distribution of the population (initial -> final):"]
    for state in DiseaseState:
        lines.append(
            f"  {STATE_NAMES[state]:<24} {initial[state]:>6} -> {final[state]:>6}"
        )
    return lines


def format_transition_matrix(result: "RunResult") -> List[str]:
    probs = result.transition_probabilities()
    header = " " * 26 + "".join(f"{s.name[:12]:>14}" for s in DiseaseState)
    lines = ["Transition probabilities (per step):", header]
    for src in DiseaseState:
        row = "".join(f"{probs[src, dst]:>14.4f}" for dst in DiseaseState)
        lines.append(f"  {STATE_NAMES[src]:<24}{row}")
    return lines


def format_state_location_counts(counts: np.ndarray) -> List[str]:
    lines = ["Location-wise distribution of states:"]
    for state in DiseaseState:
        lines.append(f"  {STATE_NAMES[state]}:")
        for loc in Location:
            lines.append(f"    {LOCATION_NAMES[loc]}: {int(counts[state, loc])}")
    return lines


def format_report(
    result: "RunResult",
    model: "Model",
    show_events: bool = True,
    max_events: Optional[int] = None,
) -> str:
    """Full report as a single string."""
    lines = format_model_summary(model, result)
    if show_events:
        lines.append("")
        lines.extend(format_infection_events(result.infection_events, max_events))
    lines.append("")
    lines.extend(format_state_distribution(result))
    lines.append("")
    lines.extend(format_transition_matrix(result))
    lines.append("")
    lines.extend(format_state_location_counts(result.state_location_counts))
    lines.append(_RULE)
    return "\n".join(lines)
