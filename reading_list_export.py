#!/usr/bin/env python3
"""
Wikipedia Reading List Export Tool
Fetches the default reading list (through the cache) and writes it as JSON.
"""

import sys
import logging
from typing import Optional

from config import load_settings
from errors import ReadingListError
from models import reading_list_to_dict, serialize_reading_list
from reading_list import create_service
from storage import save_raw_json, get_file_summary

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)
for noisy in ("urllib3", "requests"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


def export_reading_list(output: Optional[str] = None, refresh: bool = False):
    """
    Export the reading list to a file, or to stdout when no output path is given.
    """
    try:
        settings = load_settings()
        service = create_service(settings)
        logger.info("🚀 EXPORT: Fetching reading list...")
        reading_list = service.get_reading_list(refresh=refresh)
    except ReadingListError as e:
        logger.error(f"❌ Error during export: {type(e).__name__}: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("⏹️  Export interrupted by user")
        sys.exit(0)

    with_extract = sum(1 for entry in reading_list.values() if entry.extract is not None)

    if output is None:
        print(serialize_reading_list(reading_list))
        return

    if save_raw_json(reading_list_to_dict(reading_list), output):
        logger.info(f"✅ Reading list saved: {len(reading_list):,} entries")
    else:
        logger.error("❌ Failed to save reading list")
        sys.exit(1)

    summary = get_file_summary(output)
    print("\n" + "=" * 60)
    print("📊 EXPORT SUMMARY")
    print("=" * 60)
    print(f"📁 File: {summary['file']}")
    size = summary.get("size_bytes", 0)
    print(f"   Size: {size:,} bytes ({size / 1024:.1f} KB)")
    print(f"   Entries: {len(reading_list):,}")
    print(f"   With extract: {with_extract:,}")
    print("\n✅ Export completed successfully!")
    print("=" * 60)


def main():
    import argparse
    parser = argparse.ArgumentParser(description="Wikipedia Reading List Export Tool")
    parser.add_argument("--output", "-o", help="Write the JSON to this file instead of stdout")
    parser.add_argument("--refresh", action="store_true", help="Ignore the cached copy and fetch again")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    args = parser.parse_args()
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    export_reading_list(output=args.output, refresh=args.refresh)


if __name__ == "__main__":
    main()
