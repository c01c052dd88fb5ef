"""
Analyze fitness trends across generations of an EvoArena run.
Plots fitness curves, generation length, survivors and kills.
"""

import argparse
import numpy as np
import matplotlib.pyplot as plt
from pathlib import Path

REQUIRED_KEYS = ('generation', 'ticks', 'alive', 'max_fitness', 'mean_fitness', 'min_fitness', 'kills')


def load_stats(filename='evolution_stats.npz'):
    """Load statistics from file."""
    if not Path(filename).exists():
        print(f"Error: {filename} not found. Run a simulation first!")
        return None

    with np.load(filename) as data:
        stats = {key: data[key] for key in data.files}

    missing = [key for key in REQUIRED_KEYS if key not in stats]
    if missing:
        print(f"Error: {filename} is missing {', '.join(missing)}")
        return None
    return stats


def summarize(stats):
    """Headline numbers for a run."""
    max_fitness = stats['max_fitness']
    best = int(np.argmax(max_fitness))
    window = min(5, len(max_fitness))
    return {
        'generations': len(stats['generation']),
        'best_generation': int(stats['generation'][best]),
        'best_fitness': float(max_fitness[best]),
        'early_mean': float(np.mean(stats['mean_fitness'][:window])),
        'late_mean': float(np.mean(stats['mean_fitness'][-window:])),
        'total_kills': int(np.sum(stats['kills'])),
        'mean_ticks': float(np.mean(stats['ticks'])),
    }


def plot_evolution(stats, title='EvoArena - Evolutionary Progress'):
    """Create the evolution figure.

    Args:
        stats: Statistics dictionary from .npz file
        title: Title for the figure
    """
    generations = stats['generation']

    fig, axes = plt.subplots(2, 2, figsize=(14, 10))
    fig.suptitle(title, fontsize=16, fontweight='bold')

    # Plot 1: Fitness band
    ax = axes[0, 0]
    ax.fill_between(generations, stats['min_fitness'], stats['max_fitness'], color='b', alpha=0.15)
    ax.plot(generations, stats['max_fitness'], 'b-', label='Max', linewidth=2)
    ax.plot(generations, stats['mean_fitness'], 'g-', label='Mean', linewidth=2)
    ax.plot(generations, stats['min_fitness'], 'r--', label='Min', linewidth=1)
    ax.set_xlabel('Generation')
    ax.set_ylabel('Fitness')
    ax.set_title('Fitness per Generation')
    ax.legend()
    ax.grid(True, alpha=0.3)

    # Plot 2: Generation length
    ax = axes[0, 1]
    ax.plot(generations, stats['ticks'], 'k-', linewidth=2)
    ax.set_xlabel('Generation')
    ax.set_ylabel('Ticks')
    ax.set_title('Generation Length')
    ax.grid(True, alpha=0.3)

    # Plot 3: Kills
    ax = axes[1, 0]
    ax.bar(generations, stats['kills'], color='r', alpha=0.7)
    ax.set_xlabel('Generation')
    ax.set_ylabel('Kills')
    ax.set_title('Kills per Generation')
    ax.grid(True, alpha=0.3)

    # Plot 4: Text summary
    ax = axes[1, 1]
    ax.axis('off')
    summary = summarize(stats)
    text = "RUN SUMMARY\n" + "=" * 40 + "\n\n"
    text += f"Generations: {summary['generations']}\n"
    text += f"Best fitness: {summary['best_fitness']:.2f} (gen {summary['best_generation']})\n"
    text += f"Mean fitness, first 5: {summary['early_mean']:.2f}\n"
    text += f"Mean fitness, last 5:  {summary['late_mean']:.2f}\n"
    text += f"Average length: {summary['mean_ticks']:.0f} ticks\n"
    text += f"Total kills: {summary['total_kills']}\n"
    ax.text(0.05, 0.95, text, transform=ax.transAxes,
            fontsize=11, verticalalignment='top', fontfamily='monospace',
            bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.5))

    plt.tight_layout()
    return fig


def main():
    """Main analysis function."""
    parser = argparse.ArgumentParser(description='Analyze EvoArena evolution statistics')
    parser.add_argument('stats_file', type=str, nargs='?', default='evolution_stats.npz',
                        help='Path to stats .npz file (default: evolution_stats.npz)')
    parser.add_argument('--title', type=str, default='EvoArena - Evolutionary Progress',
                        help='Title for the analysis graphs')
    parser.add_argument('--output', type=str, default=None,
                        help='Save figure to file instead of displaying (e.g., analysis.png)')
    args = parser.parse_args()

    print("\n" + "=" * 60)
    print("EvoArena - Evolutionary Analysis")
    print("=" * 60 + "\n")

    stats = load_stats(args.stats_file)
    if stats is None:
        return

    print(f"Loaded {len(stats['generation'])} generations")

    if args.output:
        plt.switch_backend('Agg')

    fig = plot_evolution(stats, title=args.title)

    if args.output:
        fig.savefig(args.output, dpi=150, bbox_inches='tight')
        print(f"✓ Figure saved to: {args.output}")
    else:
        fig.savefig('evolution_analysis.png', dpi=150, bbox_inches='tight')
        print("✓ Evolution analysis saved to: evolution_analysis.png")
        plt.show()


if __name__ == "__main__":
    main()
