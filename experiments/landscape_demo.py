"""
Landscape rendering demo.

Draws the sampled energy landscape with its dominant-basin map and
overlays one trajectory, the way a canvas renderer would consume the
frame snapshots.
"""

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.colors import to_rgb

from basin_dynamics import Simulation, compute_landscape


def basin_colour_image(land, field) -> np.ndarray:
    """RGB image tinting each cell by its dominant basin, brighter where deeper."""
    rows, cols = land.shape
    image = np.full((rows, cols, 3), 0.08)
    depth = 1.0 - land.energy
    for i, basin in enumerate(field.basins):
        mask = land.basin_map == i
        image[mask] = np.array(to_rgb(basin.color)) * (0.25 + 0.75 * depth[mask][:, None])
    return image


def run_demo(
    precision: float = 0.6,
    n_ticks: int = 1200,
    width: int = 800,
    height: int = 500,
    seed: int = 3,
    save_path: str = None
):
    sim = Simulation(seed=seed)
    sim.init(width, height)
    sim.set_precision(precision)

    snapshots = [sim.tick() for _ in range(n_ticks)]
    land = compute_landscape(sim.field, width, height, resolution=4)

    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    ax = axes[0]
    extent = [0, land.shape[1] * land.resolution, land.shape[0] * land.resolution, 0]
    ax.imshow(basin_colour_image(land, sim.field), extent=extent)
    path = np.array([s.position for s in snapshots])
    ax.plot(path[:, 0], path[:, 1], color='white', linewidth=0.8, alpha=0.7)
    ax.plot(*path[-1], 'o', color='white')
    for basin in sim.field.basins:
        ax.annotate(basin.label, basin.center + np.array([0, basin.width + 14]),
                    ha='center', color='white', fontsize=8)
    arena = sim.arena
    ax.add_patch(plt.Rectangle((arena.x_min, arena.y_min),
                               arena.x_max - arena.x_min, arena.y_max - arena.y_min,
                               fill=False, edgecolor='white', linestyle='--', alpha=0.4))
    ax.set_title(f'Landscape and trajectory (precision {precision})')

    ax = axes[1]
    ticks = np.arange(1, n_ticks + 1)
    ax.plot(ticks, [s.readout.heart_rate for s in snapshots], label='Heart rate (bpm)')
    ax.plot(ticks, [s.readout.breathing_rate for s in snapshots], label='Breathing (/min)')
    ax.plot(ticks, [100 * s.readout.cognitive_access for s in snapshots],
            label='Cognitive access (%)')
    ax.set_xlabel('Tick')
    ax.set_title('Readout')
    ax.legend()

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150)
        print(f"Saved: {save_path}")

    return fig


if __name__ == "__main__":
    run_demo(save_path='landscape_demo.png')
