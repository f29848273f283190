#!/usr/bin/env python3
"""
Initialize the RosaCash ledger database.

Run this script to create the database schema.
"""
from rosacash.config.settings import Settings
from rosacash.database.connection import DatabaseConfig, DatabaseManager, SCHEMA_PATH

def main():
    """initialize the database."""
    settings = Settings.load()
    config = DatabaseConfig(settings.db_path)
    print(f"Initializing database at: {config.db_path}")

    with DatabaseManager(config) as db:
        print(f"Executing schema from: {SCHEMA_PATH}")
        row = db.initialize_schema()

        if row:
            print(f"✓ Database initialized successfully!")
            print(f"  Schema version: {row['version']}")
            print(f"  Description: {row['description']}")
        else:
            print("✗ Database initialization may have failed")

if __name__ == "__main__":
    main()
