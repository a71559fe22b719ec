"""CLI utility to create or adjust the tracked savings goal."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from ..database import session_scope
from ..errors import ServiceError
from ..money import parse_money
from ..schemas import GoalCreate, GoalUpdate
from ..services import GoalService

LOGGER = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _money_arg(raw: str):
    try:
        return parse_money(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Create the savings goal shown on the dashboard, or update the existing one "
            "with the values given."
        )
    )
    parser.add_argument("--name", help="Goal name, required when no goal exists yet.")
    parser.add_argument("--goal-amount", type=_money_arg, help="Target amount to save.")
    parser.add_argument("--current-amount", type=_money_arg, help="Amount saved so far.")
    parser.add_argument("--image-url", help="Image shown next to the progress bar.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    _configure_logging(args.verbose)

    with session_scope() as db:
        existing = GoalService.get_goal(db)
        try:
            if existing is None:
                if not args.name or args.goal_amount is None:
                    LOGGER.error("--name and --goal-amount are required to create the goal")
                    return 2
                goal = GoalService.provision_goal(
                    db,
                    GoalCreate(
                        name=args.name,
                        goal_amount=args.goal_amount,
                        current_amount=args.current_amount or 0,
                        image_url=args.image_url,
                    ),
                )
                LOGGER.info("Created goal %s (%s)", goal.name, goal.id)
            else:
                goal = GoalService.update_goal(
                    db,
                    str(existing.id),
                    GoalUpdate(
                        name=args.name,
                        goal_amount=args.goal_amount,
                        current_amount=args.current_amount,
                        image_url=args.image_url,
                    ),
                )
                LOGGER.info("Updated goal %s (%s)", goal.name, goal.id)
        except ServiceError as exc:
            LOGGER.error("%s: %s", exc.message, exc.error)
            return 1

        LOGGER.info("Progress: %s / %s", goal.current_amount, goal.goal_amount)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
