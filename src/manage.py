"""Club Feedback database management CLI.

Creates and drops the database schema for the feedback domain's SQL
providers. The default in-memory configuration has nothing to create.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    """Create the feedback schema in every SQL provider."""
    from feedback.domain import feedback
    from feedback.utils.db import setup_db

    print("Initializing feedback domain...")
    feedback.init()
    print("Creating feedback database schema...")
    providers = setup_db(feedback)
    if providers:
        print(f"  schema ready in: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to create.")

    print("Done.")


def drop_database():
    """Drop the feedback schema from every SQL provider."""
    from feedback.domain import feedback
    from feedback.utils.db import drop_db

    print("Initializing feedback domain...")
    feedback.init()
    print("Dropping feedback database schema...")
    providers = drop_db(feedback)
    if providers:
        print(f"  schema dropped in: {', '.join(providers)}")
    else:
        print("  no SQL providers configured, nothing to drop.")

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Club Feedback database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
