"""
Setup the database for the BadgePress service
"""

import argparse
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# pylint: disable=wrong-import-position
# ruff: noqa: E402
from badgepress.config import settings
from badgepress.core.data.database import (
    create_tables,
    get_database_info,
    reset_database,
    test_database_connection,
)


def setup_sqlite() -> bool:
    """Make sure the SQLite database directory exists"""

    print("Setting up SQLite database...")

    try:
        db_path = settings.get_database_url().replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)

        if db_dir and not os.path.exists(db_dir):
            os.makedirs(db_dir, exist_ok=True)
            print(f"Created directory: {db_dir}")

        print(f"SQLite database will be created at: {db_path}")
        return True

    except OSError as e:
        print(f"SQLite setup failed: {e}")
        return False


def main() -> None:
    """DB Setup Script"""
    parser = argparse.ArgumentParser(description="Setup BadgePress Database")
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Drop and recreate all tables (debug mode only)",
    )
    args = parser.parse_args()

    print("BadgePress Database Setup")
    print(f"Database Type: {settings.DATABASE_TYPE}")
    print(f"Database URL: {settings.get_database_url()}")
    print()

    if settings.DATABASE_TYPE == "sqlite" and not setup_sqlite():
        sys.exit(1)

    print("Testing database connection...")
    if not test_database_connection():
        sys.exit(1)

    print("Creating database tables...")
    try:
        if args.reset:
            reset_database()
        else:
            create_tables()
    except Exception as e:  # pylint: disable=broad-exception-caught
        print(f"Error creating database tables: {e}")
        sys.exit(1)

    print("Verifying database setup...")
    db_info = get_database_info()

    print("Database setup complete")
    print(f"Database: {db_info['type']} ({db_info.get('version', 'Unknown version')})")
    print(f"Tables: {', '.join(db_info['tables'])}")


if __name__ == "__main__":
    main()
