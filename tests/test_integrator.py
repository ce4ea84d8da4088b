"""
Tests for the stochastic integrator.
"""

import pytest
import numpy as np
from basin_dynamics.field import Basin, BasinField
from basin_dynamics.integrator import (
    Arena,
    Integrator,
    IntegratorParams,
    SimulationState,
    uniform_noise,
    zero_noise,
)


def make_field(*centers, width=50.0):
    return BasinField([
        Basin(id=f'b{i}', label=f'B{i}', color='#ffffff', depth=1.0,
              center=np.array(c), width=width)
        for i, c in enumerate(centers)
    ])


class TestIntegratorParams:
    """Tests for IntegratorParams configuration."""

    def test_default_params(self):
        """Defaults should be the tuned per-frame constants."""
        p = IntegratorParams()
        assert p.coupling == 0.12
        assert p.noise_amplitude == 4.0
        assert p.trail_capacity == 150
        assert p.max_dt == 0.1

    def test_damping_increases_with_precision(self):
        """Damping retention should rise with precision and stay below 1."""
        p = IntegratorParams()
        assert np.isclose(p.damping(0.0), 0.8)
        assert np.isclose(p.damping(0.75), 0.9125)
        assert p.damping(1.0) < 1.0

    def test_param_copy(self):
        """Copy should create an independent instance."""
        p = IntegratorParams()
        p2 = p.copy(coupling=0.5)
        assert p.coupling == 0.12
        assert p2.coupling == 0.5

    def test_undamped_rejected(self):
        """Damping that can reach 1 should raise."""
        with pytest.raises(AssertionError):
            IntegratorParams(damping_min=0.9, damping_range=0.1)


class TestArena:
    """Tests for the arena rectangle."""

    def test_inset(self):
        """Inset should shrink every side by the margin."""
        arena = Arena.inset(400, 200, 40)
        assert (arena.x_min, arena.y_min, arena.x_max, arena.y_max) == (40, 40, 360, 160)

    def test_inset_tiny_area(self):
        """Areas smaller than twice the margin collapse to the centre."""
        arena = Arena.inset(50, 200, 40)
        assert arena.x_min == arena.x_max == 25

    def test_clamp(self):
        """Points outside are pulled onto the boundary."""
        arena = Arena.inset(400, 200, 40)
        np.testing.assert_array_equal(arena.clamp(np.array([-10.0, 500.0])), [40.0, 160.0])
        np.testing.assert_array_equal(arena.clamp(np.array([100.0, 100.0])), [100.0, 100.0])
        assert arena.contains(np.array([40.0, 160.0]))
        assert not arena.contains(np.array([39.9, 100.0]))


class TestSimulationState:
    """Tests for SimulationState."""

    def test_at_rest(self):
        """A fresh state has zero velocity and no trail."""
        state = SimulationState.at_rest(np.array([1.0, 2.0]), capacity=10)
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0])
        assert len(state.trail) == 0
        assert state.trail_array().shape == (0, 2)

    def test_relocate_keep_point(self):
        """Relocation can restart the trail at the new point."""
        state = SimulationState.at_rest(np.zeros(2), capacity=10)
        state.velocity = np.array([3.0, 4.0])
        state.trail.extend([(0.0, 0.0), (1.0, 1.0)])
        state.relocate(np.array([5.0, 6.0]), keep_point=True)
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0])
        assert list(state.trail) == [(5.0, 6.0)]


class TestIntegrator:
    """Tests for Integrator.step."""

    @pytest.fixture
    def arena(self):
        return Arena.inset(400, 200, 40)

    def test_rest_at_center_without_noise(self, arena):
        """A state at rest on a lone basin centre does not move."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, noise=zero_noise)
        state = SimulationState.at_rest(np.array([100.0, 100.0]), 150)
        for _ in range(100):
            integ.step(state, precision=0.5)
        np.testing.assert_array_equal(state.position, [100.0, 100.0])

    def test_single_step_update(self, arena):
        """One frame follows v = (v + cF)·d, p += v."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, noise=zero_noise)
        state = SimulationState.at_rest(np.array([130.0, 100.0]), 150)
        force = field.force(state.position)

        integ.step(state, precision=0.5)

        expected_v = force * 0.12 * (0.8 + 0.5 * 0.15)
        np.testing.assert_allclose(state.velocity, expected_v)
        np.testing.assert_allclose(state.position, np.array([130.0, 100.0]) + expected_v)

    def test_noise_scaled_by_temperature(self, arena):
        """The noise kick is temperature·A·u before damping."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, noise=lambda: np.array([0.5, -0.5]))
        state = SimulationState.at_rest(np.array([100.0, 100.0]), 150)

        integ.step(state, precision=0.75)

        expected = np.array([0.5, -0.5]) * 0.25 * 4.0 * (0.8 + 0.75 * 0.15)
        np.testing.assert_allclose(state.velocity, expected)

    def test_position_stays_in_arena(self, arena):
        """Even with violent noise the position never leaves the arena."""
        field = make_field((100.0, 100.0), (300.0, 100.0))
        params = IntegratorParams(noise_amplitude=200.0)
        integ = Integrator(field, arena, params, seed=3)
        state = SimulationState.at_rest(np.array([200.0, 100.0]), 150)
        for _ in range(2000):
            integ.step(state, precision=0.0)
            assert arena.contains(state.position)

    def test_trail_capacity(self, arena):
        """The trail keeps only the most recent positions."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, seed=0)
        state = SimulationState.at_rest(np.array([120.0, 100.0]), 150)
        for _ in range(200):
            integ.step(state, precision=0.3)
        assert len(state.trail) == 150
        assert state.trail[-1] == (state.position[0], state.position[1])

    def test_trail_capacity_on_plain_state(self, arena):
        """A state built directly, with an unbounded deque, is capped too."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, seed=0)
        state = SimulationState(position=np.array([120.0, 100.0]))
        for _ in range(400):
            integ.step(state, precision=0.3)
        assert len(state.trail) == 150
        assert state.trail[-1] == (state.position[0], state.position[1])

    def test_nan_dt_is_noop(self, arena):
        """A NaN frame delta counts as a zero-length tick."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, seed=0)
        state = SimulationState.at_rest(np.array([130.0, 100.0]), 150)
        assert integ.frames(float('nan')) == 0.0
        integ.step(state, precision=0.2, dt=float('nan'))
        np.testing.assert_array_equal(state.position, [130.0, 100.0])
        np.testing.assert_array_equal(state.velocity, [0.0, 0.0])
        assert len(state.trail) == 0

    def test_zero_dt_is_noop(self, arena):
        """A zero-length tick leaves the state untouched."""
        field = make_field((100.0, 100.0))
        integ = Integrator(field, arena, seed=0)
        state = SimulationState.at_rest(np.array([130.0, 100.0]), 150)
        integ.step(state, precision=0.2, dt=0.0)
        integ.step(state, precision=0.2, dt=-1.0)
        np.testing.assert_array_equal(state.position, [130.0, 100.0])
        assert len(state.trail) == 0

    def test_dt_clamped(self, arena):
        """Frame hitches are clamped to max_dt."""
        integ = Integrator(make_field((100.0, 100.0)), arena)
        assert integ.frames(None) == 1.0
        assert np.isclose(integ.frames(1 / 60), 1.0)
        assert np.isclose(integ.frames(5.0), 6.0)
        assert integ.frames(-0.5) == 0.0
        assert np.isclose(integ.frames(float('inf')), 6.0)

    def test_nominal_dt_matches_default_step(self, arena):
        """A tick of nominal_dt equals a tick without dt."""
        field = make_field((100.0, 100.0))
        s1 = SimulationState.at_rest(np.array([140.0, 110.0]), 150)
        s2 = SimulationState.at_rest(np.array([140.0, 110.0]), 150)
        i1 = Integrator(field, arena, seed=7)
        i2 = Integrator(field, arena, seed=7)
        for _ in range(50):
            i1.step(s1, precision=0.6)
            i2.step(s2, precision=0.6, dt=1 / 60)
        np.testing.assert_allclose(s1.position, s2.position)

    def test_reproducibility(self, arena):
        """Same seed should give the same trajectory."""
        field = make_field((100.0, 100.0), (300.0, 100.0))
        states = []
        for _ in range(2):
            integ = Integrator(field, arena, seed=42)
            state = SimulationState.at_rest(np.array([200.0, 100.0]), 150)
            for _ in range(300):
                integ.step(state, precision=0.2)
            states.append(state)
        np.testing.assert_array_equal(states[0].position, states[1].position)

    def test_uniform_noise_range(self):
        """Default noise samples lie in [-0.5, 0.5]."""
        sample = uniform_noise(np.random.default_rng(0))
        draws = np.array([sample() for _ in range(1000)])
        assert draws.shape == (1000, 2)
        assert draws.min() >= -0.5 and draws.max() <= 0.5


class TestDescentDynamics:
    """Tests for the deterministic limit."""

    def test_energy_non_increasing(self):
        """At zero temperature energy never rises while descending into a basin."""
        field = make_field((100.0, 100.0))
        arena = Arena.inset(400, 400, 0)
        integ = Integrator(field, arena, noise=zero_noise)
        state = SimulationState.at_rest(np.array([140.0, 100.0]), 150)

        energies = [field.force_and_energy(state.position)[1]]
        for _ in range(10000):
            integ.step(state, precision=1.0)
            energies.append(field.force_and_energy(state.position)[1])

        assert np.all(np.diff(energies) <= 1e-12)
        assert np.linalg.norm(state.position - field[0].center) < 1.0

    def test_temperature_increases_exploration(self):
        """Mean per-tick displacement is larger at low precision."""
        field = make_field((100.0, 100.0), (300.0, 100.0))
        arena = Arena.inset(400, 200, 40)

        def mean_step(precision):
            integ = Integrator(field, arena, seed=11)
            state = SimulationState.at_rest(np.array([100.0, 100.0]), 150)
            total = 0.0
            for _ in range(2000):
                before = state.position.copy()
                integ.step(state, precision)
                total += np.linalg.norm(state.position - before)
            return total / 2000

        assert mean_step(0.1) > mean_step(0.98)
