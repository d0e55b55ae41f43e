"""Shared fixtures: scripted uniform draws and small hand-built models."""

import pytest

from hospital_abm.agents import Population
from hospital_abm.config import PAR_DISCHARGE, PAR_HOSPITALIZATION, PAR_RECOVERY
from hospital_abm.model import Model
from hospital_abm.virus import Virus


class ScriptedRng:
    """Stand-in for the model stream that returns preset uniforms.

    Running out of values fails the test, so a test can also assert that
    a code path makes no draw at all.
    """

    def __init__(self, values=()):
        self._values = list(values)
        self.n_drawn = 0

    def random(self):
        if not self._values:
            raise AssertionError(
                f"scripted draws exhausted after {self.n_drawn} draws"
            )
        self.n_drawn += 1
        return self._values.pop(0)

    @property
    def remaining(self):
        return len(self._values)


def named_params(hosp=0.1, recovery=0.0, discharge=0.1):
    return {
        PAR_HOSPITALIZATION: hosp,
        PAR_RECOVERY: recovery,
        PAR_DISCHARGE: discharge,
    }


@pytest.fixture
def virus():
    return Virus("MRSA")


@pytest.fixture
def params():
    return named_params()


@pytest.fixture
def make_model(virus):
    """Factory: Model over an explicit edge list with scripted draws."""
    def _make(n_agents, edges, draws=(), sampler="first_success", **par):
        population = Population.from_edges(n_agents, edges)
        model = Model(population, named_params(**par), virus=virus, sampler=sampler)
        model.rng = ScriptedRng(draws)
        return model
    return _make


@pytest.fixture
def scripted():
    """The ScriptedRng class, for tests that drive functions directly."""
    return ScriptedRng
