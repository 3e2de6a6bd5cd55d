#!/usr/bin/env python3
import os
import sys

# Add the parent directory to sys.path to allow imports from the backend
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db import SessionLocal
from utils import clear_database
from scripts.seed_demo import seed_demo_catalog

def main():
    """
    CLI utility for performing a complete reset of the storefront database.

    Drops all catalog and promotion tables, recreates the schema and, on
    request, loads the demo catalog used by simulate_demo.py.
    """
    print("WARNING: This will permanently delete all products, variants and promotions.")
    confirm = input("Are you sure you want to reset the database? (y/N): ")
    if confirm.lower() != 'y':
        print("Reset cancelled.")
        return

    try:
        clear_database()
        print("Database reset successfully.")
    except Exception as e:
        print(f"Error resetting database: {e}")
        sys.exit(1)

    if input("Seed the demo catalog? (y/N): ").lower() == 'y':
        db = SessionLocal()
        try:
            seed_demo_catalog(db)
            print("Demo catalog seeded.")
        finally:
            db.close()

if __name__ == "__main__":
    main()
