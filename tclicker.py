import argparse
import json
import logging
from importlib import metadata as importlib_metadata
from typing import Dict, List

from citizens import JOB_KEYS
from game_state import GameState

__version__ = "0.1.0"


def get_version() -> str:
    """Resolve installed package version; fall back to local constant."""
    try:
        return importlib_metadata.version("township-clicker")
    except importlib_metadata.PackageNotFoundError:
        return __version__


def parse_assignments(values: List[str]) -> Dict[str, int]:
    """Turn ``["farmers=3", "miners=1"]`` into a job -> count mapping."""
    assignments: Dict[str, int] = {}
    for value in values:
        job, sep, count = value.partition("=")
        if not sep or job not in JOB_KEYS:
            raise argparse.ArgumentTypeError(f"expected JOB=COUNT with JOB in {', '.join(JOB_KEYS)}: {value!r}")
        try:
            assignments[job] = int(count)
        except ValueError:
            raise argparse.ArgumentTypeError(f"job count must be an integer: {value!r}")
    return assignments


def main():
    parser = argparse.ArgumentParser(description="Run the Township Clicker simulation headless.")
    parser.add_argument(
        "--state",
        type=str,
        help="Path to JSON file with starting state overrides.",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit.",
    )
    parser.add_argument(
        "--sim-ticks",
        type=int,
        default=100,
        help="Number of ticks to advance (default 100).",
    )
    parser.add_argument(
        "--assign",
        action="append",
        default=[],
        metavar="JOB=COUNT",
        help="Assign citizens to a job before the run; may be repeated.",
    )
    parser.add_argument(
        "--auto-upgrade",
        action="store_true",
        help="Upgrade the town hall whenever it becomes upgradeable.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Print debug logging from the simulation.",
    )
    args = parser.parse_args()

    if args.version:
        print(get_version())
        raise SystemExit(0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        assignments = parse_assignments(args.assign)
    except argparse.ArgumentTypeError as exc:
        parser.error(str(exc))

    initial_state = {}
    if args.state:
        try:
            with open(args.state, "r", encoding="utf-8") as f:
                initial_state = json.load(f)
        except (OSError, ValueError) as exc:
            print(f"Failed to load state file '{args.state}': {exc}")
            initial_state = {}

    state = GameState(initial_state=initial_state)
    for job, count in assignments.items():
        state.action_assign_job(job, count)

    for _ in range(max(0, args.sim_ticks)):
        state.game_tick()
        if args.auto_upgrade and state.town_hall.upgradeable:
            state.town_hall.upgrade()
        for line in state.consume_logs():
            print(f"[{state.clock_ms // 1000:>5}s] {line}")

    print("Final resources:")
    for resource in state.resources:
        print(f"{resource.key}: {int(resource.stock)} / {int(resource.capacity_total)}")
    print(f"citizens: {state.citizens.count} (idle {state.citizens.idle})")
    print(f"town hall level: {state.level}")
    print(f"happiness: {state.happiness.happiness:.1f}")


if __name__ == "__main__":
    main()
