#!/usr/bin/env python3
"""
Batch Target-Search Runner

Sweeps the number of searchers (and the ensemble set index) for one base
configuration, running every parameter set in turn and writing one ``.dat``
file per set plus a ``manifest.json`` describing the batch.
"""

import argparse
import copy
import json
import sys
import time
from pathlib import Path
from typing import Any, Dict

# Add package source to path
SRC = Path(__file__).resolve().parents[1]
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from rts_sim import SearchSimulator, SimulationConfig, SimulationError, utils


def run_parameter_set(config: SimulationConfig, batch_dir: Path) -> Dict[str, Any]:
    """Run one configuration and return its manifest entry."""
    simulator = SearchSimulator(config)
    dat_path = batch_dir / utils.export_filename(config.searcher.kind, config.file_fields())
    start_time = time.time()
    with utils.FptWriter(dat_path, config.describe()) as writer:
        result = simulator.run(writer=writer)
    return {
        "output_path": str(dat_path),
        "num_searcher": config.searcher.num_searcher,
        "idx_set": config.idx_set,
        "trial_seed": simulator.seed,
        "mfpt": result.mfpt,
        "time_elapsed": time.time() - start_time,
        "success": True,
    }


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Sweep the number of searchers for one base configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=str, required=True, help="JSON or TOML base config")
    parser.add_argument(
        "--num-searcher",
        type=int,
        nargs="+",
        required=True,
        help="Numbers of searchers to sweep over",
    )
    parser.add_argument(
        "--sets",
        type=int,
        default=1,
        help="Ensemble sets per parameter value, idx_set = 0..sets-1 (default: 1)",
    )
    parser.add_argument(
        "--name", type=str, default="batch", help="Batch name for output folder"
    )
    args = parser.parse_args(argv)

    try:
        base = SimulationConfig.from_file(args.config)
    except (SimulationError, FileNotFoundError) as exc:
        print(f"Invalid configuration: {exc}")
        return 1

    timestamp = utils.now_str()
    batch_dir = Path(base.output_dir) / "batches" / f"{args.name}_{timestamp}"
    batch_dir.mkdir(parents=True, exist_ok=True)

    manifest: Dict[str, Any] = {
        "batch_name": args.name,
        "timestamp": timestamp,
        "base_config": base.to_dict(),
        "num_searcher": args.num_searcher,
        "sets": args.sets,
        "runs": [],
    }

    failures = 0
    for num_searcher in args.num_searcher:
        for idx_set in range(args.sets):
            config = copy.deepcopy(base)
            config.searcher.num_searcher = num_searcher
            config.idx_set = idx_set
            print(f"[batch] num_searcher={num_searcher}, idx_set={idx_set}")
            try:
                entry = run_parameter_set(config, batch_dir)
            except SimulationError as exc:
                failures += 1
                entry = {
                    "num_searcher": num_searcher,
                    "idx_set": idx_set,
                    "success": False,
                    "error": str(exc),
                }
                print(f"[batch] failed: {exc}")
            manifest["runs"].append(entry)

    with open(batch_dir / "manifest.json", "w", encoding="utf-8") as fh:
        json.dump(manifest, fh, indent=2)

    print(f"\nBatch finished: {len(manifest['runs']) - failures} succeeded, {failures} failed")
    print(f"   Output directory: {batch_dir}")
    return 0 if failures == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
