"""
EvoArena - headless evolution runner.

Runs generations of creatures in the main arena, printing progress and
saving per-generation statistics and the best creatures of the last
generation.
"""

import argparse
import logging
from pathlib import Path

from config import SimulationConfig
from logging_config import configure_logging
from orchestrator import GenerationOrchestrator
from records import load_creatures, save_creatures

logger = logging.getLogger(__name__)


def build_config(args) -> SimulationConfig:
    """Load the JSON config if given, then apply command-line overrides."""
    if args.config:
        config = SimulationConfig.from_json(Path(args.config).read_text())
    else:
        config = SimulationConfig.default()

    if args.population is not None:
        config.evolution.population_size = args.population
    if args.seed is not None:
        config.seed = args.seed
    if args.width is not None:
        config.arena.width = args.width
    if args.height is not None:
        config.arena.height = args.height
    if args.speed is not None:
        config.speed.ticks_per_frame = args.speed
    if args.max_speed:
        config.speed.max_speed = True
    if args.max_ticks is not None:
        config.evolution.max_generation_ticks = args.max_ticks
    return config


def print_generation(result):
    stats = result.stats
    print(f"Gen {result.generation:4d} | ticks {result.ticks:6d} | "
          f"survivors {len(result.survivors):2d} | kills {stats['kills']:3d} | "
          f"fitness max {stats['max_fitness']:8.2f} mean {stats['mean_fitness']:8.2f} "
          f"min {stats['min_fitness']:8.2f}")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Run EvoArena creature evolution headlessly')
    parser.add_argument('--generations', type=int, default=10,
                        help='Number of generations to run (default: 10)')
    parser.add_argument('--population', type=int, default=None,
                        help='Creatures per generation (default: from config, 50)')
    parser.add_argument('--speed', type=int, default=None,
                        help='Ticks per frame (default: from config)')
    parser.add_argument('--max-speed', action='store_true',
                        help='Run as many ticks per frame as the frame budget allows')
    parser.add_argument('--max-ticks', type=int, default=None,
                        help='End a generation after this many ticks')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for a reproducible run')
    parser.add_argument('--width', type=float, default=None, help='Arena width')
    parser.add_argument('--height', type=float, default=None, help='Arena height')
    parser.add_argument('--config', type=str, default=None,
                        help='Path to a JSON configuration file')
    parser.add_argument('--load', type=str, default=None,
                        help='Creature file whose pinned/saved creatures join the first generation')
    parser.add_argument('--stats-out', type=str, default='evolution_stats.npz',
                        help='Where to save per-generation statistics')
    parser.add_argument('--save-best', type=str, default='best_creatures.json',
                        help='Where to save the last generation\'s top performers')
    parser.add_argument('--log-level', type=str, default=None,
                        help='Logging level (default: EVOARENA_LOG_LEVEL or INFO)')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    configure_logging(args.log_level)

    config = build_config(args)
    orchestrator = GenerationOrchestrator(config, on_generation_ended=print_generation)

    print("\n" + "=" * 60)
    print("EvoArena - Creature Evolution")
    print("=" * 60)
    print(f"Arena: {config.arena.arena_id} ({config.arena.width:.0f}x{config.arena.height:.0f})")
    print(f"Population: {config.evolution.population_size} | Generations: {args.generations}")
    print(f"Brain: {'-'.join(str(n) for n in config.brain.layer_sizes)}")
    print("=" * 60 + "\n")

    carried = []
    if args.load:
        carried = load_creatures(args.load, config, rng=orchestrator.rng)
        # Loaded creatures are carried like saved ones
        for agent in carried:
            agent.is_saved = True
            agent.arena = config.arena.arena_id
        print(f"Loaded {len(carried)} creatures from {args.load}")

    try:
        orchestrator.start_generation(carried)
        orchestrator.run(args.generations)
    except KeyboardInterrupt:
        print("\n\nSimulation interrupted by user.")
    finally:
        print("\n" + "=" * 60)
        print("SIMULATION COMPLETE")
        print("=" * 60)
        print(f"Generations: {orchestrator.generation} | Total ticks: {orchestrator.tick}")

        if orchestrator.stats['generation']:
            orchestrator.save_stats(args.stats_out)
            print(f"Statistics saved to {args.stats_out}")
        if orchestrator.top_performers:
            save_creatures(args.save_best, orchestrator.top_performers)
            print(f"Top {len(orchestrator.top_performers)} creatures saved to {args.save_best}")


if __name__ == "__main__":
    main()
