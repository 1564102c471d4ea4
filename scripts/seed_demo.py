#!/usr/bin/env python3
"""
Seed a fresh database with the EdConnect demo district.

Creates one district, school and mathematics department, the ``admin``,
``teacher`` and ``student`` accounts with their profile records, four classes
with enrollments, grades and attendance, and a public achievement. An
existing database with any users is left untouched.
"""

import sys
from pathlib import Path

# Add src/ to path for running from a source checkout
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root / "src"))

from edconnect.core.exceptions import EdConnectException
from edconnect.core.services.database import (
    DEMO_PASSWORDS,
    DatabaseService,
    seed_demo_data,
)


def main() -> int:
    print("Seeding EdConnect demo data...")
    db_service = DatabaseService()
    try:
        if not seed_demo_data(db_service):
            print("Users already exist, skipping demo seed.")
            return 0
    except EdConnectException as e:
        print(f"[FAIL] Error seeding demo data: {e}")
        return 1
    finally:
        db_service.close()

    print(f"[OK] Demo data written to {db_service.database_url}")
    for username, password in DEMO_PASSWORDS.items():
        print(f"  {username:<8} {password}")
    print("  Action Required: change these passwords before any real use.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
