#!/usr/bin/env python3
"""
Create the shared ``careguard`` catalog table on DATABASE_URL.

Does NOT drop an existing table. Use scripts/seed_remote.py afterwards to load
the bundled catalog.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

# Make sure the package is importable when run from a checkout
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import inspect, text
from sqlalchemy.exc import OperationalError

from careguard.database.models import CatalogRecordRow
from careguard.database.remote_sql import SqlRemoteStore


def main() -> int:
    parser = argparse.ArgumentParser(description="Create the careguard catalog table")
    parser.add_argument("--database-url", default=os.environ.get("DATABASE_URL"), help="Defaults to DATABASE_URL")
    args = parser.parse_args()

    if not args.database_url:
        print("DATABASE_URL is not set", file=sys.stderr)
        return 1

    try:
        store = SqlRemoteStore(connection_string=args.database_url)
        with store.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("✅ Database connection OK")

        store.create_tables()
        tables = inspect(store.engine).get_table_names()
        if CatalogRecordRow.__tablename__ not in tables:
            print(f"❌ Table {CatalogRecordRow.__tablename__} was not created", file=sys.stderr)
            return 3
        print("✅ Catalog table ready:", CatalogRecordRow.__tablename__)
        return 0

    except OperationalError as e:
        print(f"❌ Failed to connect to database: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
