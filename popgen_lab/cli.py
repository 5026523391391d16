"""Command-line entry point: ``popgen-lab <exercise> [options]``.

Usage:
    popgen-lab drift --set drift.pop_size=100 --set drift.method=binomial
    popgen-lab all --output-dir results/
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from popgen_lab.config import PROJECT_ROOT, load_config
from popgen_lab.exercises import EXERCISES
from popgen_lab.utils import timer

DEFAULT_CONFIG = PROJECT_ROOT / "configs" / "default.yaml"


def parse_set_option(items: List[str]) -> Dict:
    """Turn ['drift.pop_size=100', ...] into a nested override dict.

    Values are parsed as YAML scalars/lists so numbers, booleans, null
    and [a, b] lists come through typed.
    """
    overrides: Dict = {}
    for item in items:
        if "=" not in item:
            raise ValueError(f"--set expects key=value, got '{item}'")
        key, raw = item.split("=", 1)
        parts = key.strip().split(".")
        if not all(parts):
            raise ValueError(f"invalid --set key '{key}'")
        node = overrides
        for p in parts[:-1]:
            node = node.setdefault(p, {})
        node[parts[-1]] = yaml.safe_load(raw)
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="popgen-lab",
        description="Population-genetics simulation exercises",
    )
    parser.add_argument("exercise", choices=sorted(EXERCISES) + ["all"],
                        help="Exercise to run")
    parser.add_argument("--config", type=str, default=str(DEFAULT_CONFIG),
                        help="Base YAML config (default: configs/default.yaml)")
    parser.add_argument("--config-override", type=str, default=None,
                        help="YAML file merged over the base config")
    parser.add_argument("--set", dest="set_items", action="append", default=[],
                        metavar="KEY=VALUE",
                        help="Override one parameter, e.g. drift.pop_size=100")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Output directory (default: output.directory)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Master RNG seed (default: simulation.seed)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    overrides = parse_set_option(args.set_items)
    if args.seed is not None:
        overrides.setdefault("simulation", {})["seed"] = args.seed
    config = load_config(args.config, args.config_override, overrides)

    output_dir = Path(args.output_dir or config.output.directory)
    names = sorted(EXERCISES) if args.exercise == "all" else [args.exercise]

    print("=" * 60)
    print(f"popgen-lab: {', '.join(names)}")
    print("=" * 60)
    print(f"  Seed:   {config.simulation.seed}")
    print(f"  Output: {output_dir}")
    print()

    for name in names:
        with timer(name):
            result = EXERCISES[name](config, output_dir)
        print(f"  {name}: {len(result.tables)} table(s), "
              f"{len(result.figures)} figure(s)")
        for key, value in result.notes.items():
            print(f"    {key} = {value:.4f}")
        result.close()

    print("\nDone.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
