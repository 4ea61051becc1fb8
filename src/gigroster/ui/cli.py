# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from gigroster.app import (
    add_pending_performer,
    invalidate_organization,
    list_pending_performers,
    open_workspace,
    search_performers,
    show_roster,
)
from gigroster.config import ConfigurationError, configure_logging

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from gigroster.domain.model import PendingEntity, Performer

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Reconcile music group rosters with Wikidata")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    roster = subparsers.add_parser("roster", help="Show the roster of a music group")
    roster.add_argument("organization", help="Wikidata item id (Q...) or group name")
    roster.add_argument(
        "--refresh",
        action="store_true",
        help="Resolve again even if a stored roster exists",
    )

    search = subparsers.add_parser("search", help="Search performers")
    search.add_argument("query", help="Free-text query (at least two characters)")
    search.add_argument("--org", help="Exclude performers already on this group's roster")
    search.add_argument(
        "--no-filter",
        action="store_true",
        help="Keep results that are neither people nor music groups",
    )

    pending = subparsers.add_parser("pending", help="Pending performer commands")
    pending_sub = pending.add_subparsers(dest="pending_command", required=True)
    pending_add = pending_sub.add_parser("add", help="Add a performer not yet in Wikidata")
    pending_add.add_argument("name", help="Display name")
    pending_add.add_argument("--org", required=True, help="Parent group id")
    pending_add.add_argument(
        "--instrument",
        action="append",
        default=[],
        help="Instrument or role (repeatable)",
    )
    pending_add.add_argument("--nationality", help="Country id or name")
    pending_list = pending_sub.add_parser("list", help="List pending performers of a group")
    pending_list.add_argument("--org", required=True, help="Parent group id")

    invalidate = subparsers.add_parser("invalidate", help="Forget the stored roster of a group")
    invalidate.add_argument("organization", help="Wikidata item id (Q...)")

    return parser.parse_args(list(argv))


def _format_performer(performer: Performer) -> str:
    parts = [f"{performer.key:<28} {performer.name}"]
    if performer.instruments:
        parts.append(f"[{', '.join(performer.instruments)}]")
    if performer.tenure is not None and not performer.tenure.is_empty:
        start = performer.tenure.start or "?"
        end = performer.tenure.end or ""
        parts.append(f"({start}-{end})")
    if performer.description:
        parts.append(f"- {performer.description}")
    return " ".join(parts)


def _format_pending(entity: PendingEntity) -> str:
    line = f"{entity.local_id:<28} {entity.name} <{entity.status}>"
    return f"{line} {entity.error}" if entity.error else line


async def _run(args: argparse.Namespace) -> None:
    async with open_workspace() as workspace:
        if args.command == "roster":
            roster = await show_roster(workspace, args.organization, refresh=args.refresh)
            print(
                f"{roster.organization_id}: {len(roster.resolved())} resolved,"
                f" {len(roster.pending())} pending"
            )
            for performer in roster:
                print(_format_performer(performer))
        elif args.command == "search":
            outcome = await search_performers(
                workspace,
                args.query,
                organization=args.org,
                domain_filter=not args.no_filter,
            )
            print(f"{outcome.query!r}: {outcome.status} ({len(outcome.performers)} results)")
            for performer in outcome.performers:
                print(_format_performer(performer))
        elif args.command == "pending" and args.pending_command == "add":
            entity = add_pending_performer(
                workspace,
                args.name,
                organization=args.org,
                instruments=args.instrument,
                nationality=args.nationality,
            )
            print(_format_pending(entity))
        elif args.command == "pending" and args.pending_command == "list":
            for entity in list_pending_performers(workspace, args.org):
                print(_format_pending(entity))
        elif args.command == "invalidate":
            invalidate_organization(workspace, args.organization)
        else:
            raise ValueError(f"Unsupported command: {args.command}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        asyncio.run(_run(parsed_args))
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
