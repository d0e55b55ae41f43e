"""Plots of hospital_abm runs (matplotlib, Agg backend)."""

from hospital_abm.viz.epidemic import (
    plot_infections_by_location,
    plot_state_history,
    plot_state_location_counts,
)

__all__ = [
    'plot_infections_by_location',
    'plot_state_history',
    'plot_state_location_counts',
]
