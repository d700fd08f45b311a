"""
Command-line client for viewing and updating study spots.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import get_settings
from backend.dependencies import build_repository
from backend.state import StudySpotsState
from backend.viewmodel import StudySpotViewModel
from shared.study_spot import SpotStatus

logger = logging.getLogger(__name__)


def _spot_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise argparse.ArgumentTypeError("spot name must not be blank")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Study spot occupancy client")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List all study spots")

    create = subparsers.add_parser("create", help="Add a new study spot")
    create.add_argument("name", type=_spot_name, help="Display name of the spot")

    update = subparsers.add_parser("update", help="Change a spot's status")
    update.add_argument("spot_id", help="Id of the spot to update")
    update.add_argument(
        "status",
        choices=[str(status) for status in SpotStatus],
        help="New occupancy status",
    )

    watch = subparsers.add_parser("watch", help="Refresh the list periodically")
    watch.add_argument(
        "--interval-seconds",
        type=float,
        default=30.0,
        help="Seconds between refreshes",
    )
    watch.add_argument(
        "--once",
        action="store_true",
        help="Refresh a single time and exit",
    )
    return parser


def render(state: StudySpotsState) -> str:
    lines = []
    for spot in state.spots:
        lines.append(
            f"{spot.id}  {spot.spot_name or '(unnamed)'}  [{spot.current_status}]  "
            f"{spot.last_updated_text}"
        )
    if not state.spots:
        lines.append("No study spots available")
    if state.error_message:
        lines.append(f"Error: {state.error_message}")
    return "\n".join(lines)


async def run(args: argparse.Namespace) -> int:
    view_model = StudySpotViewModel(build_repository(), autoload=False)
    try:
        if args.command == "list":
            ok = await view_model.fetch_spots()
        elif args.command == "create":
            ok = await view_model.create_spot(args.name)
        elif args.command == "update":
            ok = await view_model.update_status(args.spot_id, args.status)
        else:
            while True:
                ok = await view_model.fetch_spots()
                print(render(view_model.snapshot), flush=True)
                if args.once:
                    break
                await asyncio.sleep(args.interval_seconds)
            return 0 if ok else 1

        print(render(view_model.snapshot))
        return 0 if ok else 1
    finally:
        await view_model.aclose()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=get_settings().log_level,
        format="%(name)s %(levelname)s %(asctime)s %(message)s",
        datefmt="%m/%d/%Y %I:%M:%S %p",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    raise SystemExit(main())
