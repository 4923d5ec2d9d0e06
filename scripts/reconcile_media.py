#!/usr/bin/env python
"""
Media Reconciliation

Finds media folders that no category or product record points at and,
with --apply, deletes them by prefix.

Usage:
    python scripts/reconcile_media.py            # report only
    python scripts/reconcile_media.py --apply    # delete orphaned folders
"""

import argparse
import asyncio
import sys

import structlog

from storefront.config import get_settings
from storefront.config.logging import configure_logging
from storefront.database.connection import close_database, get_session_factory, init_database
from storefront.lifecycle.services import build_services
from storefront.media.cloudinary_gateway import close_media_gateway, init_media_gateway

logger = structlog.get_logger("reconcile_media")


async def run(apply: bool) -> int:
    settings = get_settings()
    await init_database()
    gateway = init_media_gateway()
    try:
        services = build_services(get_session_factory(), gateway, media_roots=settings.media.root_folders)
        report = await services.reconciler.sweep(dry_run=not apply)
    finally:
        close_media_gateway()
        await close_database()

    print("=" * 60)
    print(f"Folders scanned:  {report.scanned}")
    print(f"Orphaned folders: {len(report.orphaned)}")
    for folder in report.orphaned:
        print(f"   {folder}")
    if apply:
        print(f"Deleted: {len(report.deleted)}   Failed: {len(report.failed)}")
        for folder in report.failed:
            print(f"   failed: {folder}")
    else:
        print("Dry run, nothing deleted. Re-run with --apply to delete.")
    print("=" * 60)
    return 1 if report.failed else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Delete media folders with no matching catalog record")
    parser.add_argument("--apply", action="store_true", help="Delete orphaned folders (default: report only)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    args = parser.parse_args()

    configure_logging(args.log_level)
    return asyncio.run(run(args.apply))


if __name__ == "__main__":
    sys.exit(main())
