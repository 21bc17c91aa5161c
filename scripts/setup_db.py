#!/usr/bin/env python3
"""
Database setup script for Kickbase Companion.

Run this script to initialize the SQLite database with the required schema.
"""

import sqlite3
import sys
from pathlib import Path

# Add src to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from kickbase_companion.data.storage import Database


def main() -> None:
    """Initialize the database."""
    db_path = Path(sys.argv[1]) if len(sys.argv) > 1 else (
        Path(__file__).parent.parent / "data" / "kickbase.db"
    )
    print(f"Initializing database at: {db_path}")

    Database(db_path)

    conn = sqlite3.connect(db_path)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = [row[0] for row in cursor.fetchall()]
    conn.close()

    print(f"Created {len(tables)} tables:")
    for table in tables:
        print(f"  - {table}")

    print("\nDatabase initialized successfully!")


if __name__ == "__main__":
    main()
