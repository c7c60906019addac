#!/usr/bin/env python3
"""
Profile Migration CLI

Command-line interface for migrating a roaming profile into the local profile.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from common.exceptions import MigrationError
from common.logging_config import setup_logging

from .config import MigrationConfig, MigrationOptions
from .orchestrator import MigrationOrchestrator

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profile-migrate",
        description="Migrate a roaming profile from a legacy store into the local profile",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  profile-migrate //fileserver/profiles --include-settings keys.txt --include-data folders.txt
  profile-migrate //fileserver/profiles --config site.json --force
  profile-migrate //fileserver/profiles --passthru > descriptor.json
        """,
    )
    parser.add_argument("root", type=Path, help="Root share holding the legacy profile stores")
    parser.add_argument("-u", "--user", help="User whose profile is migrated (default: current user)")
    parser.add_argument("-c", "--config", type=Path, help="JSON site configuration")
    parser.add_argument("--include-settings", type=Path, metavar="FILE",
                        help="Registry key patterns to migrate, one per line")
    parser.add_argument("--exclude-settings", type=Path, metavar="FILE",
                        help="Registry key patterns to skip, one per line")
    parser.add_argument("--include-data", type=Path, metavar="FILE",
                        help="Data paths to migrate, one per line")
    parser.add_argument("--exclude-data", type=Path, metavar="FILE",
                        help="Data paths to skip, one per line")
    parser.add_argument("-f", "--force", action="store_true",
                        help="Migrate even if a previous run already completed")
    parser.add_argument("--passthru", action="store_true",
                        help="Print the final profile descriptor as JSON (type already_migrated when skipped)")
    parser.add_argument("--log-dir", type=Path, help="Directory for the log file")
    parser.add_argument("--json-logs", action="store_true", help="Write the log file as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    setup_logging(level=level, log_dir=args.log_dir, json_logs=args.json_logs)

    options = MigrationOptions(
        include_settings=args.include_settings,
        exclude_settings=args.exclude_settings,
        include_data=args.include_data,
        exclude_data=args.exclude_data,
        force=args.force,
        passthru=args.passthru,
    )

    try:
        config = MigrationConfig.load(args.config)
        orchestrator = MigrationOrchestrator(
            root=args.root,
            config=config,
            options=options,
            user=args.user,
        )
        result = orchestrator.run()
    except MigrationError as e:
        logger.error(f"Profile migration aborted: {e}")
        return 1

    if options.passthru:
        print(json.dumps(result.descriptor.to_dict(), indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
