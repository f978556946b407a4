"""Retail database management CLI.

Creates and drops the relational schema for the retail domain.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_database():
    from retail.domain import retail
    from retail.utils.db import setup_db

    print("Initializing retail domain...")
    retail.init()
    print("Creating retail database schema...")
    setup_db(retail)
    print("Done.")


def drop_database():
    from retail.domain import retail
    from retail.utils.db import drop_db

    print("Initializing retail domain...")
    retail.init()
    print("Dropping retail database schema...")
    drop_db(retail)
    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Retail database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args(argv)

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
