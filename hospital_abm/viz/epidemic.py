"""Epidemic visualizations.

Every function:
  - Accepts a RunResult
  - Returns a matplotlib Figure
  - Saves a PNG when ``save_path`` is given (and closes the figure)

matplotlib backend is forced to Agg (no display) on import.
"""

from __future__ import annotations

import matplotlib
matplotlib.use('Agg')

from typing import TYPE_CHECKING, Optional

import matplotlib.pyplot as plt
import numpy as np

from hospital_abm.types import LOCATION_NAMES, STATE_NAMES, DiseaseState, Location
from hospital_abm.viz.style import (
    LOCATION_COLORS,
    STATE_COLORS,
    TEXT_COLOR,
    dark_figure,
    save_figure,
)

if TYPE_CHECKING:
    from hospital_abm.model import RunResult


def _legend(ax) -> None:
    leg = ax.legend(facecolor='none', edgecolor='none', fontsize=10)
    for text in leg.get_texts():
        text.set_color(TEXT_COLOR)


def plot_state_history(
    result: "RunResult",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Stacked per-state counts over time (row 0 = initial condition)."""
    fig, ax = dark_figure(figsize=(12, 6))
    history = result.state_history
    steps = np.arange(history.shape[0])

    ax.stackplot(
        steps,
        *[history[:, s] for s in DiseaseState],
        labels=[STATE_NAMES[s] for s in DiseaseState],
        colors=[STATE_COLORS[s] for s in DiseaseState],
        alpha=0.85,
    )
    ax.set_xlim(0, max(int(steps[-1]), 1))
    ax.set_ylim(0, result.n_agents)
    ax.set_xlabel('Step')
    ax.set_ylabel('Agents')
    ax.set_title(f'Epidemic states (seed {result.seed})')
    _legend(ax)

    if save_path:
        save_figure(fig, save_path)
    return fig


def plot_state_location_counts(
    result: "RunResult",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """Grouped bars: final agents per state, split by location."""
    fig, ax = dark_figure(figsize=(10, 6))
    counts = result.state_location_counts
    x = np.arange(len(DiseaseState))
    width = 0.8 / len(Location)

    for i, loc in enumerate(Location):
        ax.bar(x + (i - 1) * width, counts[:, loc], width,
               label=LOCATION_NAMES[loc], color=LOCATION_COLORS[loc])

    ax.set_xticks(x)
    ax.set_xticklabels([STATE_NAMES[s] for s in DiseaseState])
    ax.set_ylabel('Agents')
    ax.set_title(f'Location-wise distribution of states (step {result.n_steps})')
    _legend(ax)

    if save_path:
        save_figure(fig, save_path)
    return fig


def plot_infections_by_location(
    result: "RunResult",
    save_path: Optional[str] = None,
) -> plt.Figure:
    """New infections per step, stacked by transmission location."""
    fig, ax = dark_figure(figsize=(12, 5))
    n = max(result.n_steps, 1)
    per_loc = np.zeros((len(Location), n), dtype=np.int64)
    for e in result.infection_events:
        if e.step < n:
            per_loc[e.location, e.step] += 1

    steps = np.arange(n)
    bottom = np.zeros(n, dtype=np.int64)
    for loc in Location:
        ax.bar(steps, per_loc[loc], bottom=bottom, width=1.0,
               label=LOCATION_NAMES[loc], color=LOCATION_COLORS[loc])
        bottom += per_loc[loc]

    ax.set_xlabel('Step')
    ax.set_ylabel('New infections')
    ax.set_title(f'Transmissions by location ({result.n_infections} total)')
    _legend(ax)

    if save_path:
        save_figure(fig, save_path)
    return fig
