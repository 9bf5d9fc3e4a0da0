#!/usr/bin/env python3
"""
Push the bundled seed catalog (products + categories) into the configured
remote backend. Rows whose id already exists remotely are left alone.

With Supabase row-level security enabled, pass admin credentials
(--email/--password, defaulting to ADMIN_EMAIL/ADMIN_PASSWORD) so writes carry
a signed-in session.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

sys.path.insert(0, str(Path(__file__).parent.parent))

from careguard.api.dependencies import build_auth, build_backend
from careguard.error_handler import StoreError
from careguard.integrations.contracts.interfaces import RecordType
from careguard.utils.config_loader import load_settings
from careguard.utils.seed_loader import load_seed_catalog

logger = logging.getLogger("seed_remote")


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


async def seed(email: str, password: str, dry_run: bool) -> int:
    settings = load_settings()
    if not settings.is_configured:
        print("No remote backend configured (set SUPABASE_URL/SUPABASE_ANON_KEY or DATABASE_URL)", file=sys.stderr)
        return 1

    catalog = load_seed_catalog(settings.seed_path)
    backend = build_backend(settings, catalog, cache=None)

    token = None
    if settings.backend == "supabase" and email and password:
        session = await build_auth(settings).sign_in(email, password)
        token = session.access_token
        logger.info("Signed in as %s", session.email)

    inserted = 0
    for record_type in (RecordType.CATEGORY, RecordType.PRODUCT):
        existing = {r.id for r in await backend.list(record_type, access_token=token)}
        for row in catalog.records(record_type):
            if row.id in existing:
                logger.debug("Skipping existing %s %s", record_type.value, row.id)
                continue
            if dry_run:
                print(f"would insert {record_type.value} {row.id}: {row.payload.get('name')}")
            else:
                await backend.insert(record_type, row.payload, record_id=row.id, access_token=token)
            inserted += 1

    print(f"✅ {'Would insert' if dry_run else 'Inserted'} {inserted} seed rows")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Load the bundled seed catalog into the remote backend")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL", ""))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD", ""))
    parser.add_argument("--dry-run", action="store_true", help="List rows that would be inserted")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    setup_logging(args.verbose)
    try:
        return asyncio.run(seed(args.email, args.password, args.dry_run))
    except StoreError as e:
        print(f"❌ {e.kind}: {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
