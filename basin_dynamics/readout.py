"""
Readout mapping.

Derives a display-only indicator vector from the current classification.
Nothing here feeds back into the physics.
"""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .classifier import Classification
    from .field import BasinField


TRANSITIONING = 'Transitioning...'


@dataclass(frozen=True)
class ReadoutVector:
    """
    Bodily indicators associated with a basin.

    Attributes:
        heart_rate: Beats per minute
        muscle_tension: Fraction in [0, 1]
        breathing_rate: Breaths per minute
        cognitive_access: Fraction in [0, 1]
        description: Human-readable summary
    """
    heart_rate: int
    muscle_tension: float
    breathing_rate: int
    cognitive_access: float
    description: str = ""


BASELINE_READOUT = ReadoutVector(
    heart_rate=72,
    muscle_tension=0.4,
    breathing_rate=14,
    cognitive_access=0.6,
    description='Transitioning between states...',
)


@dataclass
class ReadoutConfig:
    """
    Attributes:
        blend_rate: Multiplier k in t = min(1, proximity·k)
        description_threshold: Blend above which the basin description is shown
    """
    blend_rate: float = 1.5
    description_threshold: float = 0.5

    def __post_init__(self):
        assert self.blend_rate > 0, "blend_rate must be > 0"


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def blend_readout(
    baseline: ReadoutVector,
    target: ReadoutVector,
    t: float,
    config: Optional[ReadoutConfig] = None
) -> ReadoutVector:
    """Per-component interpolation from baseline toward target by t."""
    if config is None:
        config = ReadoutConfig()

    return ReadoutVector(
        heart_rate=int(round(_lerp(baseline.heart_rate, target.heart_rate, t))),
        muscle_tension=_lerp(baseline.muscle_tension, target.muscle_tension, t),
        breathing_rate=int(round(_lerp(baseline.breathing_rate, target.breathing_rate, t))),
        cognitive_access=_lerp(baseline.cognitive_access, target.cognitive_access, t),
        description=target.description if t > config.description_threshold else TRANSITIONING,
    )


def interpolate_readout(
    classification: Optional['Classification'],
    field: 'BasinField',
    baseline: ReadoutVector = BASELINE_READOUT,
    config: Optional[ReadoutConfig] = None
) -> ReadoutVector:
    """
    Map a classification to a readout vector.

    Unclassified states, and basins without a readout of their own,
    return the baseline unchanged.

    Args:
        classification: Current classification
        field: Basin field the classification refers to
        baseline: Vector used away from any basin
        config: Blend configuration

    Returns:
        ReadoutVector
    """
    if config is None:
        config = ReadoutConfig()

    if classification is None or not classification.classified:
        return baseline

    target = field[classification.index].readout
    if target is None:
        return baseline

    t = min(1.0, classification.proximity * config.blend_rate)
    return blend_readout(baseline, target, t, config)
