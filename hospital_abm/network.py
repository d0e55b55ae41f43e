"""Contact graph construction.

Builds the fixed small-world (Watts-Strogatz) contact graph with
networkx and converts it into a Population. Neighbour order is the
adjacency insertion order of the graph, which the first-success sampler
depends on, so the conversion never sorts or shuffles neighbours.
"""

from __future__ import annotations

import logging

import networkx as nx

from hospital_abm.agents import Agent, Population
from hospital_abm.config import ConfigError, PopulationSection, check_probability

logger = logging.getLogger(__name__)


def small_world_graph(n_agents: int, k: int, p_rewire: float, seed: int) -> nx.Graph:
    """Undirected Watts-Strogatz graph on nodes 0..n_agents-1.

    Args:
        n_agents: Number of agents.
        k: Each node is joined to its k nearest ring neighbours
           (k // 2 on each side).
        p_rewire: Probability of rewiring each edge.
        seed: Graph seed.

    Raises:
        ConfigError: On negative size, a degree outside 2 <= k < n, or a
            rewiring probability outside [0, 1].
    """
    if n_agents < 0:
        raise ConfigError(f"population size must be non-negative, got {n_agents}")
    if k < 2 or k >= max(n_agents, 1):
        raise ConfigError(
            f"degree k must satisfy 2 <= k < n_agents ({n_agents}), got {k}"
        )
    check_probability("p_rewire", p_rewire)
    return nx.watts_strogatz_graph(n_agents, k, p_rewire, seed=seed)


def population_from_graph(graph: nx.Graph) -> Population:
    """Convert a graph with nodes 0..n-1 into a Population.

    Raises:
        ConfigError: If nodes are not 0..n-1 or the graph has no edges.
    """
    n = graph.number_of_nodes()
    if set(graph.nodes) != set(range(n)):
        raise ConfigError("contact graph nodes must be labelled 0..n-1")
    if graph.number_of_edges() == 0:
        raise ConfigError(
            f"contact graph is empty ({n} agents, no edges); "
            f"no transmission is possible"
        )
    agents = [Agent(i, graph.adj[i]) for i in range(n)]
    return Population(agents)


def build_population(cfg: PopulationSection) -> Population:
    """Small-world population from its configuration section."""
    graph = small_world_graph(cfg.n_agents, cfg.k, cfg.p_rewire, cfg.graph_seed)
    population = population_from_graph(graph)
    logger.info(
        "Built small-world population: %d agents, %d edges (k=%d, p=%.3f, seed=%d)",
        len(population), graph.number_of_edges(), cfg.k, cfg.p_rewire, cfg.graph_seed,
    )
    return population
