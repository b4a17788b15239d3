#!/usr/bin/env python3
"""Command-line interface for inspecting the slug history table."""

import argparse
import logging
import sys

from .config import SlugConfig, get_settings
from .database import Database
from .store import IdentifierStore
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def cmd_init_db(db: Database, args) -> int:
    db.create_tables()
    print("slugs table ready")
    return 0


def cmd_history(db: Database, args) -> int:
    store = IdentifierStore(args.subject_type, SlugConfig())
    session = db.get_session()
    try:
        records = store.records_for(session, args.subject_id)
        if args.scope is not None:
            records = [record for record in records if record.scope == args.scope]
        if not records:
            print(f"No slugs recorded for {args.subject_type}#{args.subject_id}")
            return 1

        print(f"\n{'=' * 60}")
        print(f"SLUG HISTORY: {args.subject_type}#{args.subject_id}")
        print(f"{'=' * 60}\n")
        for position, record in enumerate(records):
            marker = "*" if position == 0 else " "
            scope = f"  [{record.scope}]" if record.scope else ""
            print(f"{marker} {record.slug:<40} {record.created_at:%Y-%m-%d %H:%M:%S}{scope}")
        return 0
    finally:
        session.close()


def cmd_lookup(db: Database, args) -> int:
    store = IdentifierStore(args.subject_type, SlugConfig())
    session = db.get_session()
    try:
        subject_ids = store.find_by_slug(session, args.subject_type, args.slug, scope=args.scope)
        if not subject_ids:
            print(f"No {args.subject_type} has held {args.slug!r}")
            return 1
        for subject_id in subject_ids:
            print(subject_id)
        return 0
    finally:
        session.close()


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="slugtrail - inspect slug history"
    )
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help=f"SQLAlchemy database URL (default: {settings.database_url})"
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: from LOG_LEVEL)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    init_db = subparsers.add_parser("init-db", help="Create the slugs table")
    init_db.set_defaults(handler=cmd_init_db)

    history = subparsers.add_parser("history", help="Show a subject's slugs, newest first")
    history.add_argument("subject_type", help="Subject type, e.g. Post")
    history.add_argument("subject_id", help="Primary key of the subject")
    history.add_argument("--scope", help="Only show records in this serialized scope")
    history.set_defaults(handler=cmd_history)

    lookup = subparsers.add_parser("lookup", help="Find the subjects that have held a slug")
    lookup.add_argument("subject_type", help="Subject type, e.g. Post")
    lookup.add_argument("slug", help="Slug to look up")
    lookup.add_argument("--scope", help="Serialized scope, e.g. 'site_id:3'")
    lookup.set_defaults(handler=cmd_lookup)

    return parser


def main(argv=None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        db = Database(args.database_url, create_tables=args.command == "init-db")
    except Exception as e:
        logger.error(f"Could not open database {args.database_url}: {e}")
        return 2

    try:
        return args.handler(db, args)
    finally:
        db.dispose()


if __name__ == "__main__":
    sys.exit(main())
