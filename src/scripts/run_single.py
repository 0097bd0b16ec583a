#!/usr/bin/env python3
"""
Single Target-Search Ensemble Runner

Runs one parameter set for ``num_ensemble`` trials and writes the
first-passage times as a ``.dat`` text file (header + one value per line)
and a compressed ``.npz``. Parameters come from a JSON/TOML file
(``--config``) or from command-line flags.
"""

import argparse
import sys
import time
from pathlib import Path

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rts_sim import (
    SearchSimulator,
    SearcherConfig,
    SimulationConfig,
    SimulationError,
    SystemConfig,
    TargetConfig,
    TimeConfig,
    utils,
)
from rts_sim.config import SEARCHER_KINDS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run one ensemble of first-passage-time trials",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON or TOML parameter file; overrides all other flags",
    )
    parser.add_argument(
        "--kind",
        choices=SEARCHER_KINDS,
        default="independent",
        help="Searcher kind (default: independent)",
    )
    parser.add_argument("--sys-size", type=float, default=10.0, help="Domain radius (default: 10)")
    parser.add_argument("--dim", type=int, default=2, help="Spatial dimension (default: 2)")
    parser.add_argument(
        "--target-size", type=float, default=1.0, help="Target radius (default: 1)"
    )
    parser.add_argument(
        "--num-searcher", type=int, default=1, help="Searchers per trial (default: 1)"
    )
    parser.add_argument(
        "--alpha", type=float, default=1.0, help="Cluster diffusion exponent (default: 1)"
    )
    parser.add_argument(
        "--radius", type=float, default=0.05, help="Searcher contact radius (default: 0.05)"
    )
    parser.add_argument("--gamma", type=float, default=1.0, help="Interaction range")
    parser.add_argument("--strength", type=float, default=1.0, help="Interaction strength")
    parser.add_argument("--dt", type=float, default=1e-2, help="Time step (default: 1e-2)")
    parser.add_argument(
        "--tmax", type=float, default=0.0, help="Time horizon, 0 for none (default: 0)"
    )
    parser.add_argument(
        "--exact-reflection",
        action="store_true",
        help="Use exact specular reflection at the domain boundary",
    )
    parser.add_argument(
        "--num-ensemble", type=int, default=1000, help="Number of trials (default: 1000)"
    )
    parser.add_argument(
        "--idx-set", type=int, default=0, help="Index of this ensemble set (default: 0)"
    )
    parser.add_argument("--seed", type=int, default=12345, help="Base random seed")
    parser.add_argument(
        "--out-dir", type=str, default="results", help="Output directory (default: results)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")
    return parser


def config_from_args(args: argparse.Namespace) -> SimulationConfig:
    if args.config is not None:
        return SimulationConfig.from_file(args.config)
    return SimulationConfig.from_dict(
        {
            "system": SystemConfig(
                size=args.sys_size, dim=args.dim, exact_reflection=args.exact_reflection
            ),
            "target": TargetConfig(size=args.target_size),
            "searcher": SearcherConfig(
                kind=args.kind,
                num_searcher=args.num_searcher,
                radius=args.radius,
                alpha=args.alpha,
                gamma=args.gamma,
                strength=args.strength,
            ),
            "time": TimeConfig(dt=args.dt, tmax=args.tmax),
            "num_ensemble": args.num_ensemble,
            "idx_set": args.idx_set,
            "seed": args.seed,
            "output_dir": args.out_dir,
            "verbose": not args.quiet,
        }
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        simulator = SearchSimulator(config)
    except (SimulationError, FileNotFoundError) as exc:
        print(f"Invalid configuration: {exc}")
        return 1

    out_dir = Path(config.output_dir)
    dat_path = out_dir / utils.export_filename(config.searcher.kind, config.file_fields())
    print(
        f"Running {config.searcher.kind} ensemble: N={config.searcher.num_searcher}, "
        f"trials={config.num_ensemble}, seed={simulator.seed}"
    )
    start_time = time.time()

    try:
        with utils.FptWriter(dat_path, config.describe()) as writer:
            result = simulator.run(writer=writer)
    except SimulationError as exc:
        print(f"Simulation failed: {exc}")
        return 1

    elapsed_time = time.time() - start_time
    npz_path = dat_path.with_suffix(".npz")
    utils.save_fpt_result(npz_path, result)

    print("\nSimulation completed successfully!")
    print(f"   Time elapsed: {elapsed_time:.2f} seconds")
    print(f"   Trials: {result.num_trials}")
    print(f"   MFPT: {result.mfpt:.5e} (std {result.stddev:.5e})")
    print(f"   Output saved to: {dat_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
