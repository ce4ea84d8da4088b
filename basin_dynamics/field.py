"""
Basin field and force/energy evaluation.

The energy landscape is a superposition of Gaussian wells on a flat
baseline:

    E(p) = E0 - Σ_b depth_b · exp(-|p - c_b|² / (2 w_b²))

The force is the analytic negative gradient of that sum, so it is smooth
everywhere and bounded over any finite arena.
"""

import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .readout import ReadoutVector


ENERGY_BASELINE = 2.0

# Raw catalog depth is scaled into well depth; width grows with depth.
WELL_DEPTH_SCALE = 1.5
WIDTH_BASE = 45.0
WIDTH_PER_DEPTH = 15.0


@dataclass(frozen=True, eq=False)
class Basin:
    """
    A single Gaussian potential well.

    Attributes:
        id: Stable identifier
        label: Display label
        color: Hex colour for the renderer
        depth: Well strength (> 0)
        center: Well centre, shape (2,)
        width: Gaussian spread (> 0), also the classification radius
        subtitle: Secondary display label
        readout: Readout vector associated with this basin
    """
    id: str
    label: str
    color: str
    depth: float
    center: np.ndarray
    width: float
    subtitle: str = ""
    readout: Optional[ReadoutVector] = None

    def __post_init__(self):
        assert self.depth > 0, f"basin {self.id!r}: depth must be > 0"
        assert self.width > 0, f"basin {self.id!r}: width must be > 0"
        center = np.asarray(self.center, dtype=float).reshape(2)
        center.setflags(write=False)
        object.__setattr__(self, 'center', center)


class BasinField:
    """
    Immutable set of basins with vectorised evaluation.

    Catalog order is preserved and is the tie-break order for
    classification.
    """

    def __init__(self, basins: Sequence[Basin], baseline: float = ENERGY_BASELINE):
        assert len(basins) > 0, "a basin field needs at least one basin"
        self.basins: Tuple[Basin, ...] = tuple(basins)
        self.baseline = float(baseline)

        self.centers = np.array([b.center for b in self.basins], dtype=float)
        self.depths = np.array([b.depth for b in self.basins], dtype=float)
        self.widths = np.array([b.width for b in self.basins], dtype=float)
        for arr in (self.centers, self.depths, self.widths):
            arr.setflags(write=False)

    def __len__(self) -> int:
        return len(self.basins)

    def __getitem__(self, index: int) -> Basin:
        return self.basins[index]

    def index_of(self, basin_id: str) -> int:
        """Catalog index of the basin with the given id."""
        for i, basin in enumerate(self.basins):
            if basin.id == basin_id:
                return i
        raise KeyError(basin_id)

    def distances(self, position: np.ndarray) -> np.ndarray:
        """Euclidean distance from position to every basin centre, shape (B,)."""
        offsets = self.centers - np.asarray(position, dtype=float)
        return np.sqrt(np.sum(offsets**2, axis=1))

    def influences(self, position: np.ndarray) -> np.ndarray:
        """Per-basin Gaussian contribution depth·exp(-d²/2w²), shape (B,)."""
        d = self.distances(position)
        return self.depths * np.exp(-(d * d) / (2.0 * self.widths**2))

    def force_and_energy(self, position: np.ndarray) -> Tuple[np.ndarray, float]:
        """
        Evaluate force and raw (unclamped) energy at a position.

        Each basin pulls toward its centre with magnitude
        depth · d / w² · exp(-d² / 2w²). The magnitude vanishes at a basin
        centre; there the distance is floored to 1 only as the divisor of
        the direction vector, so energy is evaluated at the true distance.

        Args:
            position: Point, shape (2,)

        Returns:
            (force, energy) with force of shape (2,)
        """
        offsets = self.centers - np.asarray(position, dtype=float)
        dist = np.sqrt(np.sum(offsets**2, axis=1))
        safe = np.where(dist > 0, dist, 1.0)

        gauss = np.exp(-(dist * dist) / (2.0 * self.widths**2))
        magnitude = self.depths * dist / self.widths**2 * gauss

        force = np.sum(offsets / safe[:, None] * magnitude[:, None], axis=0)
        energy = self.baseline - float(np.sum(self.depths * gauss))
        return force, energy

    def force(self, position: np.ndarray) -> np.ndarray:
        """Force at a position, shape (2,)."""
        return self.force_and_energy(position)[0]

    def energy(self, position: np.ndarray) -> float:
        """Display energy at a position, clamped to be non-negative."""
        return max(0.0, self.force_and_energy(position)[1])


# === Catalog ===

@dataclass(frozen=True)
class BasinSpec:
    """Catalog entry: everything about a basin except its placement."""
    id: str
    label: str
    subtitle: str
    color: str
    depth: float
    offset: Tuple[float, float]
    readout: Optional[ReadoutVector] = None


BASIN_CATALOG: List[BasinSpec] = [
    BasinSpec(
        'ventral', 'Ventral Vagal', 'Safe & Social', '#4ade80', 0.7, (0.0, -70.0),
        ReadoutVector(65, 0.2, 12, 0.95,
                      'Calm, connected, full cognitive flexibility'),
    ),
    BasinSpec(
        'sympathetic', 'Sympathetic', 'Fight / Flight', '#f87171', 1.0, (110.0, 30.0),
        ReadoutVector(110, 0.8, 22, 0.4,
                      'Mobilized, threat-focused, narrowed attention'),
    ),
    BasinSpec(
        'dorsal', 'Dorsal Vagal', 'Shutdown', '#64748b', 1.2, (0.0, 100.0),
        ReadoutVector(55, 0.1, 8, 0.15,
                      'Collapsed, dissociated, minimal cognitive access'),
    ),
    BasinSpec(
        'flow', 'Flow State', 'Engaged', '#a78bfa', 0.5, (-110.0, -20.0),
        ReadoutVector(75, 0.3, 14, 0.9,
                      'Absorbed, effortless action, high integration'),
    ),
    BasinSpec(
        'hypervigilance', 'Hypervigilance', 'Frozen Alert', '#fb923c', 0.9, (60.0, 60.0),
        ReadoutVector(95, 0.9, 18, 0.25,
                      'Scanning, rigid, unable to settle'),
    ),
]


def layout_scale(width: float, base_width: float = 600.0) -> float:
    """Shrink factor for narrow canvases, clamped to [0.5, 1]."""
    return max(0.5, min(1.0, width / base_width))


def make_basin_field(
    width: float,
    height: float,
    catalog: Optional[Sequence[BasinSpec]] = None,
    base_width: float = 600.0
) -> BasinField:
    """
    Place the catalog basins on a canvas.

    Basins sit at fixed offsets from the point (w/2, h/2 - 20). Offsets and
    widths shrink together on canvases narrower than base_width.

    Args:
        width: Canvas width (pixels)
        height: Canvas height (pixels)
        catalog: Basin specs. If None, uses BASIN_CATALOG.
        base_width: Width at which no shrinking happens

    Returns:
        BasinField in catalog order
    """
    if catalog is None:
        catalog = BASIN_CATALOG

    scale = layout_scale(width, base_width)
    cx = width / 2
    cy = height / 2 - 20

    basins = []
    for spec in catalog:
        dx, dy = spec.offset
        basins.append(Basin(
            id=spec.id,
            label=spec.label,
            subtitle=spec.subtitle,
            color=spec.color,
            depth=spec.depth * WELL_DEPTH_SCALE,
            center=np.array([cx + dx * scale, cy + dy * scale]),
            width=(WIDTH_BASE + spec.depth * WIDTH_PER_DEPTH) * scale,
            readout=spec.readout,
        ))
    return BasinField(basins)


# === Landscape grid (renderer aid) ===

@dataclass
class Landscape:
    """
    Sampled energy landscape.

    Attributes:
        energy: Display energy clamp(E/2, 0, 1), shape (rows, cols)
        basin_map: Dominant basin index per cell or -1, shape (rows, cols)
        resolution: Cell size in pixels
    """
    energy: np.ndarray
    basin_map: np.ndarray
    resolution: int

    @property
    def shape(self) -> Tuple[int, int]:
        return self.energy.shape


def compute_landscape(
    field: BasinField,
    width: float,
    height: float,
    resolution: int = 3,
    influence_min: float = 0.1
) -> Landscape:
    """
    Sample the landscape on a regular grid.

    Cell (row, col) samples the point (col·resolution, row·resolution).
    A cell belongs to the basin with the largest Gaussian influence when
    that influence exceeds influence_min; otherwise it is marked -1.
    """
    assert resolution > 0
    cols = int(np.ceil(width / resolution))
    rows = int(np.ceil(height / resolution))

    xs = np.arange(cols) * resolution
    ys = np.arange(rows) * resolution
    gx, gy = np.meshgrid(xs, ys)

    # (rows, cols, B)
    dx = gx[..., None] - field.centers[:, 0]
    dy = gy[..., None] - field.centers[:, 1]
    influence = field.depths * np.exp(-(dx * dx + dy * dy) / (2.0 * field.widths**2))

    total = field.baseline - influence.sum(axis=-1)
    energy = np.clip(total / 2.0, 0.0, 1.0)

    dominant = np.argmax(influence, axis=-1)
    basin_map = np.where(influence.max(axis=-1) > influence_min, dominant, -1)

    return Landscape(energy=energy, basin_map=basin_map, resolution=resolution)
