#!/usr/bin/env python3
"""
Write the inquiry CSV (same format as the admin console download) to stdout
or to a file.
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

from careguard.api.dependencies import build_services
from careguard.error_handler import StoreError
from careguard.utils.config_loader import load_settings


async def export(output: str, email: str, password: str) -> int:
    services = build_services(load_settings())
    token = None
    if services.settings.is_configured and email and password:
        session = await services.sessions.sign_in(email, password)
        token = session["access_token"]

    store = services.store
    await store.reload(access_token=token)
    if store.last_error is not None:
        print(f"❌ Could not load inquiries ({store.last_error.kind}): {store.last_error.message}", file=sys.stderr)
        return 2

    csv_text = store.export_inquiries_csv()
    if output == "-":
        sys.stdout.write(csv_text + "\n")
    else:
        Path(output).write_text(csv_text + "\n", encoding="utf-8")
        print(f"✅ Wrote {len(store.inquiries)} inquiries to {output}", file=sys.stderr)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Export quote inquiries as CSV")
    parser.add_argument("-o", "--output", default="-", help="File path, or - for stdout (default)")
    parser.add_argument("--email", default=os.environ.get("ADMIN_EMAIL", ""))
    parser.add_argument("--password", default=os.environ.get("ADMIN_PASSWORD", ""))
    args = parser.parse_args()

    logging.basicConfig(level=logging.WARNING)
    try:
        return asyncio.run(export(args.output, args.email, args.password))
    except StoreError as e:
        print(f"❌ {e.kind}: {e.message}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
