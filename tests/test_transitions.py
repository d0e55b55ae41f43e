"""Tests for hospital_abm.transitions — per-state handlers.

Draws are scripted, so each test states exactly which uniforms a handler
consumes and in which order.
"""

import numpy as np
import pytest

from hospital_abm.sampling import CONTACT_INFECTION_PROB
from hospital_abm.transitions import (
    DEFAULT_HANDLERS,
    draw_infected_location,
    draw_susceptible_location,
    update_infected,
    update_infected_hospitalized,
    update_susceptible,
)
from hospital_abm.types import DiseaseState, Location


S = DiseaseState.SUSCEPTIBLE
I = DiseaseState.INFECTED
IH = DiseaseState.INFECTED_HOSPITALIZED


# ── location policy ──────────────────────────────────────────────────

class TestLocationPolicy:
    @pytest.mark.parametrize("u, expected", [
        (0.0, Location.COMMUNITY),
        (0.33, Location.COMMUNITY),
        (0.34, Location.HOSPITAL),
        (0.66, Location.HOSPITAL),
        (0.67, Location.HOME),
        (0.999, Location.HOME),
    ])
    def test_susceptible_floor_mapping(self, make_model, u, expected):
        model = make_model(2, [(0, 1)], draws=[u])
        assert draw_susceptible_location(model) == expected

    @pytest.mark.parametrize("u, expected", [
        (0.0, Location.COMMUNITY),
        (0.4999, Location.COMMUNITY),
        (0.5, Location.HOME),
        (0.999, Location.HOME),
    ])
    def test_infected_community_or_home(self, make_model, u, expected):
        model = make_model(2, [(0, 1)], draws=[u])
        assert draw_infected_location(model) == expected

    def test_infected_never_self_assigns_hospital(self, make_model, virus):
        model = make_model(2, [(0, 1)], hosp=0.0, recovery=0.0)
        model.rng = np.random.default_rng(5)
        agent = model.population[0]
        agent.set_virus(virus, I)
        for _ in range(500):
            update_infected(agent, model)
            assert model.locations[0] != Location.HOSPITAL

    def test_default_handler_table(self):
        assert DEFAULT_HANDLERS[S] is update_susceptible
        assert DEFAULT_HANDLERS[I] is update_infected
        assert DEFAULT_HANDLERS[IH] is update_infected_hospitalized


# ── susceptible handler ──────────────────────────────────────────────

class TestUpdateSusceptible:
    def test_noop_when_not_susceptible(self, make_model, virus):
        """No draws, no location write, no transition."""
        model = make_model(2, [(0, 1)], draws=[])
        agent = model.population[1]
        agent.set_virus(virus, I)
        model.locations[1] = Location.HOME
        update_susceptible(agent, model)
        assert model.rng.n_drawn == 0
        assert model.locations[1] == Location.HOME
        assert model.commit_transitions() == 0
        assert len(model.infection_log) == 0

    def test_infection_logged_and_infected(self, make_model, virus):
        model = make_model(2, [(0, 1)], draws=[0.1, 0.1, 0.5])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.COMMUNITY
        agent = model.population[1]

        update_susceptible(agent, model)
        assert model.rng.remaining == 0
        assert model.infection_log.as_tuples() == [(1, 0, int(Location.COMMUNITY))]

        model.commit_transitions()
        assert agent.state == I
        assert agent.virus is virus

    def test_infection_hospitalized_split(self, make_model, virus):
        """Prob hospitalization (0.1) > draw (0.05) → hospitalized."""
        model = make_model(2, [(0, 1)], draws=[0.1, 0.1, 0.05])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.COMMUNITY
        agent = model.population[1]

        update_susceptible(agent, model)
        model.commit_transitions()
        assert agent.state == IH
        assert agent.virus is virus
        assert model.locations[1] == Location.HOSPITAL

    def test_failed_trial_no_infection(self, make_model, virus):
        model = make_model(2, [(0, 1)], draws=[0.1, CONTACT_INFECTION_PROB])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.COMMUNITY
        update_susceptible(model.population[1], model)
        assert model.rng.remaining == 0
        assert len(model.infection_log) == 0
        assert model.commit_transitions() == 0

    def test_no_colocated_infected_no_draws(self, make_model, virus):
        """Infected neighbour at Home, agent goes to Community: only the location draw."""
        model = make_model(2, [(0, 1)], draws=[0.1])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.HOME
        update_susceptible(model.population[1], model)
        assert model.rng.n_drawn == 1
        assert len(model.infection_log) == 0

    def test_hospitalized_neighbour_is_not_infectious(self, make_model, virus):
        model = make_model(2, [(0, 1)], draws=[0.5])
        model.population[0].set_virus(virus, IH)
        model.locations[0] = Location.HOSPITAL
        update_susceptible(model.population[1], model)  # lands in Hospital
        assert model.locations[1] == Location.HOSPITAL
        assert model.rng.n_drawn == 1
        assert len(model.infection_log) == 0


# ── infected handler ─────────────────────────────────────────────────

class TestUpdateInfected:
    @pytest.fixture
    def infected_model(self, make_model, virus):
        def _make(draws, **par):
            model = make_model(2, [(0, 1)], draws=draws, **par)
            model.population[0].set_virus(virus, I)
            return model
        return _make

    def test_hospitalize(self, infected_model, virus):
        model = infected_model([0.7, 0.05], hosp=0.1, recovery=0.2)
        agent = model.population[0]
        update_infected(agent, model)
        assert model.locations[0] == Location.HOME
        model.commit_transitions()
        assert agent.state == IH
        assert agent.virus is virus
        assert model.locations[0] == Location.HOSPITAL

    def test_recover(self, infected_model):
        model = infected_model([0.2, 0.15], hosp=0.1, recovery=0.2)
        agent = model.population[0]
        update_infected(agent, model)
        model.commit_transitions()
        assert agent.state == S
        assert agent.virus is None
        assert model.locations[0] == Location.COMMUNITY

    def test_no_change(self, infected_model, virus):
        model = infected_model([0.2, 0.5], hosp=0.1, recovery=0.2)
        agent = model.population[0]
        update_infected(agent, model)
        assert model.commit_transitions() == 0
        assert agent.state == I
        assert agent.virus is virus

    def test_zero_probabilities_never_change(self, infected_model):
        model = infected_model([], hosp=0.0, recovery=0.0)
        model.rng = np.random.default_rng(11)
        agent = model.population[0]
        for _ in range(1000):
            update_infected(agent, model)
            assert model.commit_transitions() == 0
        assert agent.state == I

    def test_two_draws_per_call(self, infected_model):
        model = infected_model([0.9, 0.9, 0.1, 0.9])
        agent = model.population[0]
        update_infected(agent, model)
        assert model.rng.n_drawn == 2
        update_infected(agent, model)
        assert model.rng.remaining == 0


# ── hospitalized handler ─────────────────────────────────────────────

class TestUpdateInfectedHospitalized:
    @pytest.fixture
    def ih_model(self, make_model, virus):
        def _make(draws, **par):
            model = make_model(2, [(0, 1)], draws=draws, **par)
            model.population[0].set_virus(virus, IH)
            model.locations[0] = Location.COMMUNITY
            return model
        return _make

    @pytest.mark.parametrize("u", [0.0, 0.3, 0.999999])
    def test_certain_recovery(self, ih_model, u):
        """Prob recovery = 1 always recovers; the discharge draw is skipped."""
        model = ih_model([u], hosp=0.0, recovery=1.0, discharge=1.0)
        agent = model.population[0]
        update_infected_hospitalized(agent, model)
        assert model.rng.remaining == 0
        model.commit_transitions()
        assert agent.state == S
        assert agent.virus is None

    def test_forced_to_hospital(self, ih_model):
        model = ih_model([0.9, 0.9], recovery=0.0, discharge=0.1)
        update_infected_hospitalized(model.population[0], model)
        assert model.locations[0] == Location.HOSPITAL

    def test_discharge_keeps_virus(self, ih_model, virus):
        model = ih_model([0.3, 0.2], recovery=0.0, discharge=0.5)
        agent = model.population[0]
        update_infected_hospitalized(agent, model)
        assert model.rng.remaining == 0
        model.commit_transitions()
        assert agent.state == I
        assert agent.virus is virus

    def test_stays_hospitalized(self, ih_model):
        model = ih_model([0.3, 0.9], recovery=0.0, discharge=0.5)
        agent = model.population[0]
        update_infected_hospitalized(agent, model)
        assert model.commit_transitions() == 0
        assert agent.state == IH


# ── whole-step scenarios ─────────────────────────────────────────────

class TestStepScenarios:
    def test_two_agent_transmission(self, make_model, virus):
        """Agent 0 infected, agent 1 susceptible; forced co-location and success.

        Draws: agent 0 location (Community), agent 0 roulette (no change),
        agent 1 location (Community), contact trial (success),
        hospitalization (no).
        """
        model = make_model(2, [(0, 1)], draws=[0.1, 0.95, 0.1, 0.1, 0.5])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.HOME
        model.locations[1] = Location.HOME

        model.step()

        assert model.rng.remaining == 0
        assert model.population[1].state in (I, IH)
        assert model.population[1].virus is virus
        assert len(model.infection_log) == 1
        event = model.infection_log[0]
        assert event.infector_id == 0
        assert event.susceptible_id == 1
        assert event.location == Location.COMMUNITY
        assert event.step == 0

    def test_earlier_agent_sees_previous_location(self, make_model, virus):
        """Agent 0 runs before agent 1 and sees agent 1's location from last step."""
        model = make_model(2, [(0, 1)], draws=[0.9, 0.2, 0.9, 0.1, 0.95])
        model.population[1].set_virus(virus, I)
        model.locations[1] = Location.HOME

        model.step()

        assert model.infection_log.as_tuples() == [(0, 1, int(Location.HOME))]
        assert model.locations[1] == Location.COMMUNITY
        assert model.population[0].state == I

    def test_states_commit_at_end_of_step(self, make_model, virus):
        """Agent 1 infected during the step cannot infect agent 2 in the same step."""
        model = make_model(3, [(0, 1), (1, 2)],
                           draws=[0.1, 0.95, 0.1, 0.1, 0.5, 0.1], hosp=0.1)
        model.population[0].set_virus(virus, I)

        model.step()

        assert model.rng.remaining == 0
        assert [e.susceptible_id for e in model.infection_log] == [1]
        assert model.population[1].state == I
        assert model.population[2].state == S

    def test_removed_handler_skips_state(self, make_model, virus):
        model = make_model(2, [(0, 1)], draws=[0.9])
        model.population[0].set_virus(virus, I)
        model.locations[0] = Location.COMMUNITY
        model.add_state(I, None)
        model.step()  # only agent 1's location draw
        assert model.rng.remaining == 0
        assert model.population[0].state == I
