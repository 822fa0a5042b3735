#!/usr/bin/env python3
"""
Agent Kanban Ops Core
Shared setup for the maintenance scripts in ops/.
"""

import argparse
import logging
import sys

# Standardized Logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("AgentKanban")


def setup_script(description):
    """
    Standard setup for ops scripts.
    Returns: parser (argparse.ArgumentParser)

    Usage:
        parser = setup_script("My script description")
        parser.add_argument('--target', required=True)
        args = parser.parse_args()
    """
    parser = argparse.ArgumentParser(
        description=description, formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Report what would happen without changing anything"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    return parser


def handle_debug(args):
    """Enable debug logging (including the hook library) if --debug is set."""
    if getattr(args, "debug", False):
        logger.setLevel(logging.DEBUG)
        logging.getLogger("kanban_hook").setLevel(logging.DEBUG)
        logger.debug("Debug mode enabled")


def check_dry_run(args, action_description):
    """
    Log and skip a mutating action in dry-run mode.

    Usage:
        if check_dry_run(args, "purge 3 spool files"):
            return
    """
    if getattr(args, "dry_run", False):
        logger.warning(f"DRY RUN: Would {action_description}")
        return True
    return False


def finalize(success=True, message=None):
    """Standard exit for ops scripts."""
    if success:
        logger.info(message or "Operation Complete")
        sys.exit(0)
    logger.error(message or "Operation Failed")
    sys.exit(1)
