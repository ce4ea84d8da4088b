"""
Basin classification.

Maps a continuous position to the basin it currently sits in, if any,
together with a normalized proximity to that basin's centre.
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Optional

from .field import BasinField


UNCLASSIFIED = -1


@dataclass
class ClassifierConfig:
    """
    Configuration for basin classification.

    Attributes:
        capture_factor: A basin captures positions closer than width × capture_factor
    """
    capture_factor: float = 1.2

    def __post_init__(self):
        assert self.capture_factor > 0, "capture_factor must be > 0"


@dataclass(frozen=True, eq=False)
class Classification:
    """Result of classifying a position. distances is a read-only copy."""
    index: int = UNCLASSIFIED
    basin_id: Optional[str] = None
    proximity: float = 0.0
    distance: float = float('inf')
    distances: np.ndarray = field(default_factory=lambda: np.zeros(0))

    def __post_init__(self):
        distances = np.array(self.distances, dtype=float)
        distances.setflags(write=False)
        object.__setattr__(self, 'distances', distances)

    @property
    def classified(self) -> bool:
        return self.index != UNCLASSIFIED


class BasinClassifier:
    """
    Nearest-capturing-basin classifier.

    A basin is a candidate when the position lies strictly inside its
    capture radius. The nearest candidate wins; equal distances go to the
    basin defined first in the field.

    Usage:
        classifier = BasinClassifier(field)
        result = classifier.classify(position)
        if result.classified:
            print(f"{result.basin_id}: {result.proximity:.2f}")
    """

    def __init__(self, field: BasinField, config: Optional[ClassifierConfig] = None):
        self.field = field
        self.config = config or ClassifierConfig()

    def capture_radii(self) -> np.ndarray:
        """Capture radius per basin, shape (B,)."""
        return self.field.widths * self.config.capture_factor

    def classify(self, position: np.ndarray) -> Classification:
        """
        Classify a position.

        Args:
            position: Point, shape (2,)

        Returns:
            Classification; index is UNCLASSIFIED when no basin captures
            the position.
        """
        distances = self.field.distances(position)

        captured = distances < self.capture_radii()
        if not np.any(captured):
            return Classification(distances=distances)

        # argmin returns the first minimum, which is catalog order
        candidates = np.where(captured, distances, np.inf)
        best = int(np.argmin(candidates))
        d = float(distances[best])

        return Classification(
            index=best,
            basin_id=self.field[best].id,
            # Positions in the capture ring beyond width report zero proximity
            proximity=min(1.0, max(0.0, 1.0 - d / self.field.widths[best])),
            distance=d,
            distances=distances,
        )
