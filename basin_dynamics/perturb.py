"""
Discrete perturbations.

Instantaneous interventions applied between ticks: a quench that throws
the state into the high-arousal basin and freezes it there, a manual
relocation, and a reset to the home basin.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional

from .field import BasinField
from .integrator import Arena, SimulationState

logger = logging.getLogger(__name__)


@dataclass
class PerturbationConfig:
    """
    Configuration for perturbations.

    Attributes:
        home_index: Basin the state starts in and resets to
        quench_index: High-arousal basin a quench throws the state into
        quench_spread: Full span of the uniform offset around the quench centre
        quench_precision: Precision set by a quench
        default_precision: Precision restored by a reset
        shock_duration: How long a quench marks the simulation shocked (s)
    """
    home_index: int = 0
    quench_index: int = 1
    quench_spread: float = 30.0
    quench_precision: float = 0.95
    default_precision: float = 0.75
    shock_duration: float = 0.5

    def __post_init__(self):
        assert self.quench_spread >= 0, "quench_spread must be >= 0"
        assert 0 <= self.quench_precision <= 1, "quench_precision must be in [0, 1]"
        assert 0 <= self.default_precision <= 1, "default_precision must be in [0, 1]"
        assert self.shock_duration >= 0, "shock_duration must be >= 0"


def _basin_index(field: BasinField, index: int) -> int:
    # Small fields (e.g. two-basin test setups) fall back to the last basin
    return min(index, len(field) - 1)


def home_center(field: BasinField, config: Optional[PerturbationConfig] = None) -> np.ndarray:
    """Centre of the home basin."""
    if config is None:
        config = PerturbationConfig()
    return np.array(field[_basin_index(field, config.home_index)].center)


def quench(
    state: SimulationState,
    field: BasinField,
    arena: Arena,
    rng: np.random.Generator,
    config: Optional[PerturbationConfig] = None
) -> float:
    """
    Throw the state into the high-arousal basin.

    The new position is the basin centre plus a uniform offset of span
    quench_spread per axis, clamped into the arena. Velocity and trail
    are cleared.

    Returns:
        Precision the caller must adopt
    """
    if config is None:
        config = PerturbationConfig()

    basin = field[_basin_index(field, config.quench_index)]
    offset = (rng.random(2) - 0.5) * config.quench_spread
    state.relocate(arena.clamp(basin.center + offset))

    logger.debug("Quench into %s at (%.1f, %.1f)", basin.id, *state.position)
    return config.quench_precision


def relocate(state: SimulationState, arena: Arena, point: np.ndarray) -> bool:
    """
    Move the state to a point (clamped into the arena) and restart the trail there.

    A point with a non-finite coordinate is ignored.

    Returns:
        True if the state moved
    """
    point = np.asarray(point, dtype=float)
    if not np.all(np.isfinite(point)):
        logger.debug("Ignored relocation to non-finite point %s", point)
        return False
    target = arena.clamp(point)
    state.relocate(target, keep_point=True)
    logger.debug("Relocated to (%.1f, %.1f)", *target)
    return True


def reset(
    state: SimulationState,
    field: BasinField,
    arena: Arena,
    config: Optional[PerturbationConfig] = None
) -> float:
    """
    Return the state to the exact home basin centre, at rest, with no trail.

    Returns:
        Precision the caller must adopt
    """
    if config is None:
        config = PerturbationConfig()

    state.relocate(arena.clamp(home_center(field, config)))
    logger.debug("Reset to home basin")
    return config.default_precision
