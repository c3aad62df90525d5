#!/usr/bin/env python3
"""CLI for generating cave maps and printing them as ASCII art."""

import argparse
import logging
import sys
import time
from typing import Optional

import numpy as np

from .cellmap import CellularMap, EvolveStrategy, FLOOR, WALL
from .generator import MapConfig, generate_map
from .metrics import measure_map

CELL_CHARS = {FLOOR: ".", WALL: "#"}
OTHER_CHAR = "@"


def format_map(cave: CellularMap) -> str:
    """Render one row per line: floor '.', wall '#', anything else '@'."""
    lines = []
    for r in range(cave.get_height()):
        lines.append("".join(
            CELL_CHARS.get(cave.get_element(r, c), OTHER_CHAR)
            for c in range(cave.get_width())
        ))
    return "\n".join(lines)


def benchmark_evolve(
    width: int = 30,
    height: int = 30,
    wall_probability: int = 40,
    iterations: int = 100,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """Mean seconds per evolve step on a randomly filled map."""
    if iterations <= 0:
        raise ValueError(f"iterations must be positive, got {iterations}")
    cave = CellularMap(width, height, rng=rng)
    cave.random_fill(wall_probability)

    start = time.perf_counter()
    for _ in range(iterations):
        cave.evolve_default()
    return (time.perf_counter() - start) / iterations


def config_from_args(args) -> MapConfig:
    config = MapConfig(
        width=args.width,
        height=args.height,
        wall_probability=args.wall_prob,
        steps=args.steps,
        seed=args.seed,
        strategy=EvolveStrategy(args.strategy),
    )
    config.validate()
    return config


def cmd_generate(args):
    """Print a map right after random fill and again after smoothing."""
    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    rng = np.random.default_rng(config.seed)
    cave = CellularMap(config.width, config.height, rng=rng)
    cave.random_fill(config.wall_probability)
    print(format_map(cave))
    print()

    try:
        cave.run(config.steps, strategy=config.strategy)
    except NotImplementedError as e:
        print(f"Error: {e}")
        sys.exit(1)
    print(format_map(cave))


def cmd_stats(args):
    """Generate a map and show its cave statistics."""
    try:
        config = config_from_args(args)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Generating {config.width}x{config.height} map")
    print(f"  Wall probability: {config.wall_probability}%")
    print(f"  Steps: {config.steps}")
    print()

    try:
        result = generate_map(config, record_history=True)
    except NotImplementedError as e:
        print(f"Error: {e}")
        sys.exit(1)
    metrics = measure_map(result.map, result.history)

    print("Metrics:")
    print(f"  Wall density:        {metrics.wall_density:.4f}")
    print(f"  Caves:               {metrics.cave_count}")
    print(f"  Largest cave:        {metrics.largest_cave}")
    print(f"  Largest cave ratio:  {metrics.largest_cave_ratio:.4f}")
    print(f"  Mean cave size:      {metrics.mean_cave_size:.2f}")
    print(f"  Final change rate:   {metrics.final_change_rate:.4f}")


def cmd_bench(args):
    """Time the evolve step."""
    try:
        per_step = benchmark_evolve(
            width=args.width,
            height=args.height,
            wall_probability=args.wall_prob,
            iterations=args.iterations,
            rng=np.random.default_rng(args.seed),
        )
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    print(f"Evolve on {args.width}x{args.height} map: "
          f"{per_step * 1e6:.1f} us/step over {args.iterations} iterations")


def add_map_arguments(parser, width: int, height: int):
    parser.add_argument("--width", type=int, default=width, help="Map width")
    parser.add_argument("--height", type=int, default=height, help="Map height")
    parser.add_argument("--wall-prob", type=int, default=40, help="Initial wall probability (0-100)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Cellular Maps - generate cave-like maps with a cellular automaton"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    strategies = [s.value for s in EvolveStrategy]

    # Generate command
    gen_parser = subparsers.add_parser("generate", help="Generate and print a map")
    add_map_arguments(gen_parser, width=30, height=35)
    gen_parser.add_argument("--steps", type=int, default=3, help="Smoothing steps")
    gen_parser.add_argument("--strategy", choices=strategies, default="default", help="Evolve strategy")
    gen_parser.set_defaults(func=cmd_generate)

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show statistics of a generated map")
    add_map_arguments(stats_parser, width=30, height=35)
    stats_parser.add_argument("--steps", type=int, default=3, help="Smoothing steps")
    stats_parser.add_argument("--strategy", choices=strategies, default="default", help="Evolve strategy")
    stats_parser.set_defaults(func=cmd_stats)

    # Benchmark command
    bench_parser = subparsers.add_parser("bench", help="Benchmark the evolve step")
    add_map_arguments(bench_parser, width=30, height=30)
    bench_parser.add_argument("-n", "--iterations", type=int, default=100, help="Evolve steps to time")
    bench_parser.set_defaults(func=cmd_bench)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s | %(levelname)s | %(message)s",
        )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
