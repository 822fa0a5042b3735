#!/usr/bin/env python3
"""
Kanban Spool

Inspect and flush the Agent Kanban hook spool: events the hook could not
deliver to the tracking service and left on disk.

Usage:
    kanban_spool.py                  # List pending events
    kanban_spool.py --drain          # Deliver pending events now
    kanban_spool.py --purge          # Delete pending events
    kanban_spool.py --purge --dry-run
    kanban_spool.py --spool-dir DIR  # Use another spool directory
"""

from __future__ import annotations

import sys
from pathlib import Path

# Add lib to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "lib"))
from core import setup_script, handle_debug, check_dry_run, finalize, logger  # noqa: E402
from kanban_hook.config import load_config  # noqa: E402
from kanban_hook.delivery import RetryingPoster  # noqa: E402
from kanban_hook.errors import ConfigError  # noqa: E402
from kanban_hook.spool import SpoolStore  # noqa: E402


def describe(store: SpoolStore) -> list[str]:
    """One line per readable entry: file, event type, run, timestamp."""
    lines = []
    for entry in store.entries():
        event = entry.event
        lines.append(
            f"{entry.name}  {event.event_type:<18} run={event.run_id or '-'} "
            f"ticket={event.ticket_id or '-'} at {event.timestamp}"
        )
    return lines


def main(argv: list[str] | None = None) -> None:
    parser = setup_script("Inspect, drain or purge the Agent Kanban hook spool")
    parser.add_argument("--spool-dir", type=Path, help="Spool directory (default: from environment)")
    action = parser.add_mutually_exclusive_group()
    action.add_argument("--drain", action="store_true", help="Deliver pending events now")
    action.add_argument("--purge", action="store_true", help="Delete all pending events")
    args = parser.parse_args(argv)
    handle_debug(args)

    config = load_config(argv=[])
    store = SpoolStore(args.spool_dir or config.spool_dir)
    pending = store.pending_files()

    if args.purge:
        if check_dry_run(args, f"purge {len(pending)} spool file(s) from {store.directory}"):
            finalize(True, "Dry run complete")
        removed = store.purge()
        finalize(True, f"Purged {removed} spool file(s)")

    if args.drain:
        if check_dry_run(args, f"drain {len(pending)} spool file(s) to {config.api_url}"):
            finalize(True, "Dry run complete")
        try:
            config.require_token()
        except ConfigError as e:
            finalize(False, str(e))
        report = store.drain(RetryingPoster.from_config(config))
        finalize(
            not report.failed,
            f"Delivered {len(report.delivered)}, still pending {len(report.failed)}, "
            f"quarantined {len(report.quarantined)}",
        )

    logger.info(f"Spool: {store.directory} ({len(pending)} pending)")
    for line in describe(store):
        print(line)
    finalize(True, "Listing complete")


if __name__ == "__main__":
    main()
