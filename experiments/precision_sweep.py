"""
Precision sweep experiment.

Measures how precision (inverse temperature) trades exploration for
trapping: per-tick displacement, number of distinct basins visited, and
time spent unclassified.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Dict

from basin_dynamics import Simulation


def sweep_precision(
    precisions: np.ndarray,
    n_ticks: int = 3000,
    n_trials: int = 3,
    width: int = 800,
    height: int = 500,
    verbose: bool = True
) -> Dict[str, np.ndarray]:
    """
    Run the catalog simulation at each precision.

    Args:
        precisions: Precision values to test
        n_ticks: Ticks per trial
        n_trials: Trials per precision (different seeds)
        width: Canvas width
        height: Canvas height
        verbose: Print progress

    Returns:
        Dictionary of per-precision means
    """
    results = {
        'precision': [],
        'displacement': [],
        'basins_visited': [],
        'unclassified_fraction': [],
    }

    total = len(precisions) * n_trials
    count = 0

    for precision in precisions:
        displacement = []
        visited_counts = []
        unclassified = []

        for trial in range(n_trials):
            count += 1
            if verbose:
                print(f"  [{count}/{total}] precision={precision:.2f}, trial={trial}")

            sim = Simulation(seed=100 + trial)
            sim.init(width, height)
            sim.set_precision(precision)

            visited = set()
            moved = 0.0
            n_unclassified = 0
            previous = sim.state.position.copy()

            for _ in range(n_ticks):
                snap = sim.tick()
                moved += np.linalg.norm(snap.position - previous)
                previous = snap.position
                if snap.classification.classified:
                    visited.add(snap.basin_id)
                else:
                    n_unclassified += 1

            displacement.append(moved / n_ticks)
            visited_counts.append(len(visited))
            unclassified.append(n_unclassified / n_ticks)

        results['precision'].append(precision)
        results['displacement'].append(np.mean(displacement))
        results['basins_visited'].append(np.mean(visited_counts))
        results['unclassified_fraction'].append(np.mean(unclassified))

    for key in results:
        results[key] = np.array(results[key])

    return results


def plot_precision_sweep(results: Dict[str, np.ndarray], save_path: str = None):
    """Plot exploration measures against precision."""
    fig, axes = plt.subplots(1, 3, figsize=(15, 4))

    ax = axes[0]
    ax.plot(results['precision'], results['displacement'], 'o-', color='orange')
    ax.set_xlabel('Precision')
    ax.set_ylabel('Mean displacement per tick (px)')
    ax.set_title('Exploration vs Precision')

    ax = axes[1]
    ax.plot(results['precision'], results['basins_visited'], 's-', color='purple')
    ax.set_xlabel('Precision')
    ax.set_ylabel('Distinct basins visited')
    ax.set_title('Basins Visited')

    ax = axes[2]
    ax.plot(results['precision'], results['unclassified_fraction'], '^-', color='gray')
    ax.set_xlabel('Precision')
    ax.set_ylabel('Fraction of ticks unclassified')
    ax.set_title('Time in Transit')
    ax.set_ylim([-0.05, 1.05])

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150)
        print(f"Saved: {save_path}")

    return fig


if __name__ == "__main__":
    print("=" * 60)
    print("PRECISION SWEEP")
    print("=" * 60)

    precisions = np.linspace(0.1, 0.98, 12)
    results = sweep_precision(precisions)

    print("\nprecision  displacement  basins  unclassified")
    for p, d, b, u in zip(results['precision'], results['displacement'],
                          results['basins_visited'], results['unclassified_fraction']):
        print(f"  {p:.2f}      {d:7.3f}      {b:4.1f}     {u:.2f}")

    plot_precision_sweep(results, 'precision_sweep.png')
