"""
Simulation driver.

A Simulation owns one basin field and one state and exposes the command
interface a frame scheduler and an input handler talk to:

    sim = Simulation(seed=0)
    sim.init(800, 500)
    snapshot = sim.tick(1 / 60)
    sim.set_precision(0.3)
    sim.quench()

Every tick runs to completion (integrate, classify, read out) before its
snapshot is published. Calls made before init are no-ops.
"""

import logging
import numpy as np
from dataclasses import dataclass, field
from typing import Optional, Tuple

from .classifier import BasinClassifier, Classification, ClassifierConfig
from .field import BasinField, make_basin_field
from .integrator import (
    Arena,
    Integrator,
    IntegratorParams,
    NoiseSource,
    SimulationState,
    uniform_noise,
)
from .perturb import PerturbationConfig, home_center
from .readout import BASELINE_READOUT, ReadoutConfig, ReadoutVector, interpolate_readout
from . import perturb

logger = logging.getLogger(__name__)


def clamp_precision(value: float) -> float:
    """Clamp a control input into [0, 1]; NaN falls back to 0."""
    value = float(value)
    if np.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


@dataclass
class ControlParameters:
    """User-adjustable controls. Temperature is derived."""
    precision: float = 0.75

    def __post_init__(self):
        self.precision = clamp_precision(self.precision)

    @property
    def temperature(self) -> float:
        return 1.0 - self.precision


@dataclass
class SimulationParams:
    """
    Parameters for a whole simulation instance.

    Attributes:
        integrator: Integrator parameters
        classifier: Classification thresholds
        readout: Readout blending
        perturbation: Quench/reset configuration
        margin: Inset of the arena from the canvas edges (pixels)
        panel_width: Right-hand strip reserved for the readout panel (pixels)
        mobile_width: Canvases narrower than this reserve no panel strip
        start_jitter: Full span of the uniform start offset around home
        base_width: Canvas width at which the basin layout is unscaled
    """
    integrator: IntegratorParams = field(default_factory=IntegratorParams)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    readout: ReadoutConfig = field(default_factory=ReadoutConfig)
    perturbation: PerturbationConfig = field(default_factory=PerturbationConfig)
    margin: float = 40.0
    panel_width: float = 160.0
    mobile_width: float = 500.0
    start_jitter: float = 20.0
    base_width: float = 600.0

    def __post_init__(self):
        assert self.margin >= 0, "margin must be >= 0"
        assert self.panel_width >= 0, "panel_width must be >= 0"
        assert self.mobile_width >= 0, "mobile_width must be >= 0"
        assert self.start_jitter >= 0, "start_jitter must be >= 0"

    def copy(self, **overrides) -> 'SimulationParams':
        """Create a copy with optional parameter overrides."""
        kwargs = {
            'integrator': self.integrator.copy(),
            'classifier': ClassifierConfig(**vars(self.classifier)),
            'readout': ReadoutConfig(**vars(self.readout)),
            'perturbation': PerturbationConfig(**vars(self.perturbation)),
            'margin': self.margin,
            'panel_width': self.panel_width,
            'mobile_width': self.mobile_width,
            'start_jitter': self.start_jitter,
            'base_width': self.base_width,
        }
        kwargs.update(overrides)
        return SimulationParams(**kwargs)


@dataclass(frozen=True)
class FrameSnapshot:
    """
    Read-only view of one completed tick.

    Arrays are copies marked read-only; mutating the simulation afterwards
    does not change a published snapshot.
    """
    position: np.ndarray
    velocity: np.ndarray
    trail: np.ndarray
    classification: Classification
    readout: ReadoutVector
    energy: float
    precision: float
    temperature: float
    shocked: bool
    time: float
    tick: int

    @property
    def basin_id(self) -> Optional[str]:
        return self.classification.basin_id


def _frozen(arr: np.ndarray) -> np.ndarray:
    out = np.array(arr, dtype=float)
    out.setflags(write=False)
    return out


class Simulation:
    """
    One independent annealing simulation.

    Attributes:
        p: SimulationParams instance
        controls: Current ControlParameters
        field: BasinField, None until init
        state: SimulationState, None until init
        time: Simulated time (s)
        ticks: Number of completed ticks
    """

    def __init__(
        self,
        params: Optional[SimulationParams] = None,
        seed: Optional[int] = None,
        noise: Optional[NoiseSource] = None
    ):
        """
        Args:
            params: Simulation parameters
            seed: Seed for jitter, quench offsets and default noise
            noise: Noise source override (e.g. zero_noise for deterministic runs)
        """
        self.p = params or SimulationParams()
        self._rng = np.random.default_rng(seed)
        self._noise = noise or uniform_noise(self._rng)
        self.controls = ControlParameters(self.p.perturbation.default_precision)

        self.field: Optional[BasinField] = None
        self.state: Optional[SimulationState] = None
        self.arena: Optional[Arena] = None
        self.integrator: Optional[Integrator] = None
        self.classifier: Optional[BasinClassifier] = None
        self.time = 0.0
        self.ticks = 0
        self._shocked_until = -np.inf

    @property
    def initialized(self) -> bool:
        return self.state is not None

    @property
    def precision(self) -> float:
        return self.controls.precision

    @property
    def temperature(self) -> float:
        return self.controls.temperature

    def init(
        self,
        width: float,
        height: float,
        field: Optional[BasinField] = None
    ) -> Tuple[BasinField, SimulationState]:
        """
        Build the field and a fresh state for a canvas.

        The arena is the canvas minus the readout panel, inset by the
        margin. Canvases narrower than mobile_width reserve no panel, and
        the arena always reaches past the rightmost basin centre by half
        the quench spread so that resets and quenches land unclamped.
        The state starts in the home basin, jittered by the configured
        span.

        Args:
            width: Canvas width (pixels)
            height: Canvas height (pixels)
            field: Custom basin field. If None, the catalog is laid out on
                   the canvas.

        Returns:
            (field, state)
        """
        if field is None:
            field = make_basin_field(width, height, base_width=self.p.base_width)

        self.field = field
        self.arena = self._arena_for(width, height, field)
        self.integrator = Integrator(field, self.arena, self.p.integrator, noise=self._noise)
        self.classifier = BasinClassifier(field, self.p.classifier)

        jitter = (self._rng.random(2) - 0.5) * self.p.start_jitter
        start = self.arena.clamp(home_center(field, self.p.perturbation) + jitter)
        self.state = SimulationState.at_rest(start, self.p.integrator.trail_capacity)

        self.time = 0.0
        self.ticks = 0
        self._shocked_until = -np.inf

        logger.info("Simulation initialized: %d basins, arena %s", len(field), self.arena)
        return self.field, self.state

    def _arena_for(self, width: float, height: float, field: BasinField) -> Arena:
        panel = 0.0 if width < self.p.mobile_width else self.p.panel_width
        reach = (float(np.max(field.centers[:, 0]))
                 + self.p.perturbation.quench_spread / 2 + self.p.margin)
        usable = min(float(width), max(width - panel, reach))
        return Arena.inset(max(0.0, usable), height, self.p.margin)

    def teardown(self):
        """Drop field and state; the simulation returns to the uninitialized state."""
        if not self.initialized:
            return
        self.field = None
        self.state = None
        self.arena = None
        self.integrator = None
        self.classifier = None
        logger.info("Simulation torn down after %d ticks", self.ticks)

    # === Controls and perturbations ===

    def set_precision(self, value: float):
        """Set precision, clamped into [0, 1]."""
        self.controls.precision = clamp_precision(value)

    def quench(self):
        """Throw the state into the high-arousal basin and spike precision."""
        if not self.initialized:
            return
        precision = perturb.quench(self.state, self.field, self.arena, self._rng, self.p.perturbation)
        self.set_precision(precision)
        self._shocked_until = self.time + self.p.perturbation.shock_duration

    def relocate_to(self, point):
        """Place the state at a point, at rest, with a one-point trail."""
        if not self.initialized:
            return
        perturb.relocate(self.state, self.arena, np.asarray(point, dtype=float))

    def reset(self):
        """Return to the home basin centre and the default precision."""
        if not self.initialized:
            return
        precision = perturb.reset(self.state, self.field, self.arena, self.p.perturbation)
        self.set_precision(precision)
        self._shocked_until = -np.inf

    @property
    def shocked(self) -> bool:
        return self.time < self._shocked_until

    # === Per-tick ===

    def classify(self) -> Optional[Classification]:
        """Classify the current position; None before init."""
        if not self.initialized:
            return None
        return self.classifier.classify(self.state.position)

    def _advance(self, dt: Optional[float]):
        self.integrator.step(self.state, self.controls.precision, dt)
        self.time += self.integrator.frames(dt) * self.p.integrator.nominal_dt
        self.ticks += 1

    def tick(self, dt: Optional[float] = None) -> Optional[FrameSnapshot]:
        """
        Advance one frame and publish its snapshot.

        Args:
            dt: Wall-clock frame delta (s), clamped to [0, max_dt].
                If None, one nominal frame.

        Returns:
            FrameSnapshot, or None before init
        """
        if not self.initialized:
            return None

        self._advance(dt)
        return self.snapshot()

    def snapshot(self) -> Optional[FrameSnapshot]:
        """Snapshot of the current state without advancing."""
        if not self.initialized:
            return None

        classification = self.classifier.classify(self.state.position)
        readout = interpolate_readout(
            classification, self.field, BASELINE_READOUT, self.p.readout
        )

        return FrameSnapshot(
            position=_frozen(self.state.position),
            velocity=_frozen(self.state.velocity),
            trail=_frozen(self.state.trail_array()),
            classification=classification,
            readout=readout,
            energy=self.field.energy(self.state.position),
            precision=self.controls.precision,
            temperature=self.controls.temperature,
            shocked=self.shocked,
            time=self.time,
            tick=self.ticks,
        )

    def run(self, n_ticks: int, dt: Optional[float] = None) -> Optional[FrameSnapshot]:
        """Advance n_ticks frames, publishing only the final snapshot."""
        if not self.initialized:
            return None
        for _ in range(n_ticks):
            self._advance(dt)
        return self.snapshot()
