"""
Quench study experiment.

After a quench the state is frozen in the high-arousal region at high
precision. This study lowers precision to a range of recovery values and
measures how long the state takes to reach the home basin again.
"""

import numpy as np
import matplotlib.pyplot as plt
from typing import Dict, List

from basin_dynamics import Simulation


def measure_escape(
    sim: Simulation,
    home_id: str,
    max_ticks: int = 6000
) -> int:
    """
    Tick until the state is classified into the home basin.

    Returns:
        Ticks taken, or max_ticks if it never arrived
    """
    for tick in range(max_ticks):
        snap = sim.tick()
        if snap.basin_id == home_id:
            return tick + 1
    return max_ticks


def run_quench_study(
    recovery_precisions: np.ndarray,
    n_trials: int = 8,
    hold_ticks: int = 120,
    max_ticks: int = 6000,
    width: int = 800,
    height: int = 500
) -> Dict:
    """
    Quench, hold at the quench precision, then relax precision and time the return.

    Args:
        recovery_precisions: Precision values used after the hold
        n_trials: Trials per precision
        hold_ticks: Ticks spent at the quench precision first
        max_ticks: Cap on the recovery phase
        width: Canvas width
        height: Canvas height

    Returns:
        Dictionary with per-trial results
    """
    results = {
        'precision': [],
        'trial': [],
        'held_basin': [],
        'escape_ticks': [],
        'recovered': [],
    }

    total = len(recovery_precisions) * n_trials
    count = 0

    for precision in recovery_precisions:
        for trial in range(n_trials):
            count += 1
            print(f"  [{count}/{total}] precision={precision:.2f}, trial={trial}")

            sim = Simulation(seed=2000 + trial)
            sim.init(width, height)
            home_id = sim.field[sim.p.perturbation.home_index].id

            sim.quench()
            held = sim.run(hold_ticks)

            sim.set_precision(precision)
            ticks = measure_escape(sim, home_id, max_ticks)

            results['precision'].append(precision)
            results['trial'].append(trial)
            results['held_basin'].append(held.basin_id)
            results['escape_ticks'].append(ticks)
            results['recovered'].append(ticks < max_ticks)

    for key in ('precision', 'trial', 'escape_ticks', 'recovered'):
        results[key] = np.array(results[key])

    return results


def trace_quench(
    precisions: List[float] = [0.95, 0.6, 0.2],
    n_ticks: int = 1500,
    width: int = 800,
    height: int = 500
) -> Dict[float, np.ndarray]:
    """Record post-quench trajectories at a few fixed precisions."""
    traces = {}
    for precision in precisions:
        sim = Simulation(seed=7)
        sim.init(width, height)
        sim.quench()
        sim.set_precision(precision)
        path = [sim.state.position.copy()]
        for _ in range(n_ticks):
            path.append(sim.tick().position)
        traces[precision] = np.array(path)
    return traces


def plot_quench_study(results: Dict, traces: Dict[float, np.ndarray],
                      field, save_path: str = None):
    """Escape statistics and example trajectories."""
    fig, axes = plt.subplots(1, 2, figsize=(13, 5))

    precisions = np.unique(results['precision'])

    ax = axes[0]
    means = []
    stds = []
    probs = []
    for p in precisions:
        mask = results['precision'] == p
        ticks = results['escape_ticks'][mask]
        means.append(np.mean(ticks))
        stds.append(np.std(ticks))
        probs.append(np.mean(results['recovered'][mask]))

    ax.errorbar(precisions, means, yerr=stds, fmt='o-', capsize=3, color='red')
    ax.set_xlabel('Recovery precision')
    ax.set_ylabel('Ticks to reach home basin')
    ax.set_title('Post-Quench Recovery Time')
    ax2 = ax.twinx()
    ax2.plot(precisions, probs, 's--', color='green', alpha=0.6)
    ax2.set_ylabel('Recovery probability')
    ax2.set_ylim([-0.05, 1.05])

    ax = axes[1]
    for basin in field.basins:
        circle = plt.Circle(basin.center, basin.width, color=basin.color, alpha=0.2)
        ax.add_patch(circle)
        ax.annotate(basin.label, basin.center, ha='center', fontsize=8)
    for precision, path in traces.items():
        ax.plot(path[:, 0], path[:, 1], linewidth=1, label=f'precision {precision}')
    ax.set_aspect('equal')
    ax.invert_yaxis()
    ax.set_title('Trajectories After Quench')
    ax.legend(fontsize=8)

    plt.tight_layout()

    if save_path:
        plt.savefig(save_path, dpi=150)
        print(f"Saved: {save_path}")

    return fig


if __name__ == "__main__":
    print("=" * 60)
    print("QUENCH STUDY")
    print("=" * 60)

    print("\n1. Timing recovery...")
    results = run_quench_study(np.linspace(0.1, 0.9, 9))

    held = {}
    for basin_id in results['held_basin']:
        held[basin_id] = held.get(basin_id, 0) + 1
    print(f"\nBasin occupied after hold: {held}")

    print("\n2. Tracing trajectories...")
    traces = trace_quench()

    reference = Simulation(seed=0)
    reference.init(800, 500)
    plot_quench_study(results, traces, reference.field, 'quench_study.png')
