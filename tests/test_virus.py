"""Tests for hospital_abm.virus — pathogen definition and seeding."""

import numpy as np
import pytest

from hospital_abm.agents import Population
from hospital_abm.config import ConfigError, VirusSection
from hospital_abm.rng import make_rng
from hospital_abm.types import DiseaseState
from hospital_abm.virus import Virus, distribute_randomly, make_virus, n_initial_cases


class TestVirus:
    def test_defaults(self):
        v = Virus("MRSA")
        assert v.prob_infecting == 0.1
        assert v.prob_recovery == 0.0
        assert v.prevalence == 0.01
        assert v.init_state == DiseaseState.INFECTED

    def test_identity_equality(self):
        """Two pathogens with the same parameters are still distinct."""
        assert Virus("MRSA") != Virus("MRSA")

    @pytest.mark.parametrize("field", ["prob_infecting", "prob_recovery", "prevalence"])
    def test_probabilities_validated(self, field):
        with pytest.raises(ConfigError, match=field):
            Virus("MRSA", **{field: 1.5})

    def test_init_state_must_be_infected(self):
        with pytest.raises(ConfigError, match="init_state"):
            Virus("MRSA", init_state=DiseaseState.SUSCEPTIBLE)

    def test_make_virus(self):
        v = make_virus(VirusSection(name="CRE", prevalence=0.05))
        assert v.name == "CRE"
        assert v.prevalence == 0.05


class TestInitialCases:
    @pytest.mark.parametrize("prevalence,n,expected", [
        (0.01, 1000, 10),
        (0.05, 200, 10),
        (0.01, 150, 1),
        (0.01, 99, 0),
        (0.0, 1000, 0),
        (1.0, 7, 7),
    ])
    def test_floor(self, prevalence, n, expected):
        assert n_initial_cases(prevalence, n) == expected


class TestDistributeRandomly:
    def _pop(self, n):
        return Population.from_edges(n, [(i, (i + 1) % n) for i in range(n)])

    def test_seeds_exact_count(self):
        pop = self._pop(200)
        virus = Virus("MRSA", prevalence=0.05)
        ids = distribute_randomly(virus, pop, make_rng(1))
        assert ids.size == 10
        assert np.unique(ids).size == 10
        assert np.all(np.diff(ids) > 0)
        for agent in pop:
            if agent.id in ids:
                assert agent.state == DiseaseState.INFECTED
                assert agent.virus is virus
            else:
                assert agent.state == DiseaseState.SUSCEPTIBLE
                assert agent.virus is None

    def test_reproducible(self):
        virus = Virus("MRSA", prevalence=0.1)
        ids1 = distribute_randomly(virus, self._pop(100), make_rng(5))
        ids2 = distribute_randomly(virus, self._pop(100), make_rng(5))
        np.testing.assert_array_equal(ids1, ids2)

    def test_zero_cases_draws_nothing(self):
        rng = make_rng(3)
        before = rng.bit_generator.state
        ids = distribute_randomly(Virus("MRSA", prevalence=0.0), self._pop(50), rng)
        assert ids.size == 0
        assert rng.bit_generator.state == before

    def test_hospitalized_init_state(self):
        pop = self._pop(10)
        virus = Virus("MRSA", prevalence=0.2,
                      init_state=DiseaseState.INFECTED_HOSPITALIZED)
        ids = distribute_randomly(virus, pop, make_rng(0))
        assert all(pop[int(i)].state == DiseaseState.INFECTED_HOSPITALIZED for i in ids)
