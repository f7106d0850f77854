"""
Seed the configured database with sample personnel, inventory and vehicles.

Usage:
  python scripts/seed_sample_data.py

This script is idempotent: running it multiple times only inserts the records
that are missing, matched on email / serial number / plate.
"""

from zimmet.config import settings
from zimmet.db import init_database
from zimmet.seed import seed_sample_data


def main():
    database = init_database(settings.database_url, create_tables=True)
    session = database.session()
    try:
        created = seed_sample_data(session)
        print(f"Seeded: {created}")
    finally:
        session.close()
        database.dispose()


if __name__ == "__main__":
    main()
