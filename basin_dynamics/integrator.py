"""
Damped stochastic integrator.

Advances a single point mass through the basin field. Per nominal frame:

    v ← (v + c·F(p) + T·A·u) · (d_min + precision·d_range)
    p ← clamp(p + v)

where T = 1 - precision and u is uniform on [-1/2, 1/2]² from a seeded
noise source. Damping stays below 1 for every precision in [0, 1] while
forces are bounded, so velocity cannot grow without bound.
"""

import numpy as np
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Optional, Tuple

from .field import BasinField


# Returns two samples in [-0.5, 0.5]
NoiseSource = Callable[[], np.ndarray]


def uniform_noise(rng: np.random.Generator) -> NoiseSource:
    """Noise source drawing centred uniform samples from rng."""
    def sample() -> np.ndarray:
        return rng.random(2) - 0.5
    return sample


def zero_noise() -> np.ndarray:
    """Noise source for deterministic runs."""
    return np.zeros(2)


@dataclass
class IntegratorParams:
    """
    Parameters of the stochastic integrator.

    Attributes:
        coupling: Force-to-velocity coupling per frame (c)
        noise_amplitude: Full span of the per-frame noise kick at T = 1 (A)
        damping_min: Velocity retention at precision 0
        damping_range: Extra retention gained at precision 1
        trail_capacity: Number of recent positions kept for rendering
        nominal_dt: Frame period the per-frame constants are tuned for (s)
        max_dt: Upper clamp on a single tick's dt (s)
    """
    coupling: float = 0.12
    noise_amplitude: float = 4.0
    damping_min: float = 0.8
    damping_range: float = 0.15
    trail_capacity: int = 150
    nominal_dt: float = 1.0 / 60.0
    max_dt: float = 0.1

    def __post_init__(self):
        assert self.coupling >= 0, "coupling must be >= 0"
        assert self.noise_amplitude >= 0, "noise_amplitude must be >= 0"
        assert 0 <= self.damping_min < 1, "damping_min must be in [0, 1)"
        assert self.damping_min + self.damping_range < 1, "damping must stay below 1"
        assert self.trail_capacity > 0, "trail_capacity must be > 0"
        assert self.nominal_dt > 0 and self.max_dt > 0

    def damping(self, precision: float) -> float:
        """Per-frame velocity retention at a given precision."""
        return self.damping_min + precision * self.damping_range

    def copy(self, **overrides) -> 'IntegratorParams':
        """Create a copy with optional parameter overrides."""
        kwargs = {
            'coupling': self.coupling,
            'noise_amplitude': self.noise_amplitude,
            'damping_min': self.damping_min,
            'damping_range': self.damping_range,
            'trail_capacity': self.trail_capacity,
            'nominal_dt': self.nominal_dt,
            'max_dt': self.max_dt,
        }
        kwargs.update(overrides)
        return IntegratorParams(**kwargs)


@dataclass(frozen=True)
class Arena:
    """Axis-aligned rectangle the state is confined to."""
    x_min: float
    y_min: float
    x_max: float
    y_max: float

    def __post_init__(self):
        assert self.x_min <= self.x_max and self.y_min <= self.y_max, "empty arena"

    @classmethod
    def inset(cls, width: float, height: float, margin: float = 40.0) -> 'Arena':
        """
        Arena covering a width × height area shrunk by margin on every side.

        Areas too small for the margin collapse to their centre line.
        """
        mx = min(margin, width / 2)
        my = min(margin, height / 2)
        return cls(mx, my, width - mx, height - my)

    def clamp(self, point: np.ndarray) -> np.ndarray:
        lo = np.array([self.x_min, self.y_min])
        hi = np.array([self.x_max, self.y_max])
        return np.clip(np.asarray(point, dtype=float), lo, hi)

    def contains(self, point: np.ndarray) -> bool:
        x, y = point
        return self.x_min <= x <= self.x_max and self.y_min <= y <= self.y_max


@dataclass
class SimulationState:
    """
    Mutable point-mass state.

    Attributes:
        position: Shape (2,), always inside the arena
        velocity: Shape (2,)
        trail: Recent positions, oldest first
    """
    position: np.ndarray
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(2))
    trail: Deque[Tuple[float, float]] = field(default_factory=deque)

    @classmethod
    def at_rest(cls, position: np.ndarray, capacity: int) -> 'SimulationState':
        """State at a position with zero velocity and an empty trail."""
        return cls(
            position=np.array(position, dtype=float),
            velocity=np.zeros(2),
            trail=deque(maxlen=capacity),
        )

    def relocate(self, position: np.ndarray, keep_point: bool = False):
        """Move instantly, stop, and restart the trail."""
        self.position = np.array(position, dtype=float)
        self.velocity = np.zeros(2)
        self.trail.clear()
        if keep_point:
            self.trail.append((float(self.position[0]), float(self.position[1])))

    def trail_array(self) -> np.ndarray:
        """Trail as an array of shape (n, 2)."""
        if not self.trail:
            return np.zeros((0, 2))
        return np.array(self.trail, dtype=float)


class Integrator:
    """
    Advances a SimulationState through a BasinField.

    The integrator owns nothing but its parameters and noise source; the
    state is passed in and mutated in place.
    """

    def __init__(
        self,
        field: BasinField,
        arena: Arena,
        params: Optional[IntegratorParams] = None,
        noise: Optional[NoiseSource] = None,
        seed: Optional[int] = None
    ):
        """
        Args:
            field: Basin field supplying forces
            arena: Bounds the position is clamped to
            params: Integrator parameters
            noise: Noise source. If None, seeded uniform noise.
            seed: Seed for the default noise source
        """
        self.field = field
        self.arena = arena
        self.p = params or IntegratorParams()
        self.noise = noise or uniform_noise(np.random.default_rng(seed))

    def frames(self, dt: Optional[float]) -> float:
        """
        Number of nominal frames a tick of dt covers (may be fractional).

        dt is clamped to [0, max_dt]; NaN counts as a zero-length tick.
        """
        if dt is None:
            return 1.0
        dt = float(dt)
        if np.isnan(dt):
            return 0.0
        dt = min(max(dt, 0.0), self.p.max_dt)
        return dt / self.p.nominal_dt

    def step(self, state: SimulationState, precision: float, dt: Optional[float] = None):
        """
        Advance state by one tick.

        Args:
            state: State to update in place
            precision: Inverse temperature in [0, 1]
            dt: Wall-clock tick length (s). If None, one nominal frame.
        """
        h = self.frames(dt)
        if h <= 0:
            return

        force = self.field.force(state.position)

        temperature = 1.0 - precision
        kick = temperature * self.p.noise_amplitude * np.asarray(self.noise(), dtype=float)

        velocity = state.velocity + force * self.p.coupling * h + kick * np.sqrt(h)
        velocity *= self.p.damping(precision) ** h

        state.velocity = velocity
        state.position = self.arena.clamp(state.position + velocity * h)
        state.trail.append((float(state.position[0]), float(state.position[1])))
        # States built without at_rest may carry an unbounded deque
        while len(state.trail) > self.p.trail_capacity:
            state.trail.popleft()
