"""hospital_abm: Agent-based model of hospital-associated disease spread.

A network-structured, individual-based model coupling:
  - A fixed small-world contact graph between agents
  - Daily movement between Community, Hospital and Home
  - Co-location-gated transmission along contact edges
  - Susceptible → Infected → Infected (hospitalized) dynamics with
    recovery and discharge paths

Runs are bit-exact reproducible for a given population and seed.
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
