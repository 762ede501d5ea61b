#!/usr/bin/env python3
"""
CLI script to geocode a listings CSV: parse rows, resolve missing coordinates
through the configured provider, and write the results as JSON.

Run from the project root:
  python scripts/geocode_listings.py listings.csv -o geocoded.json

Uses .env for provider settings (GEOCODER_PROVIDER, GEOCODER_RATE_LIMIT_DELAY, ...).
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Ensure project root is on path when run as scripts/geocode_listings.py
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

# Load .env before importing config
load_dotenv(_project_root / ".env")

from api.cache import get_cache_stats, init_cache
from api.services.geocode_resolver import GeocodeProgress, GeocodeResolver
from api.services.geocoding import create_geocoder
from api.services.listing_csv_parser import parse_listings_csv


def print_progress(progress: GeocodeProgress) -> None:
    print(f"  geocoding {progress.current}/{progress.total}", end="\r", file=sys.stderr, flush=True)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Geocode a property listings CSV")
    parser.add_argument("csv_path", type=Path, help="Listings CSV file")
    parser.add_argument(
        "-o", "--output", type=Path, default=None, help="Output JSON file (default: stdout)"
    )
    parser.add_argument("--encoding", default=None, help="CSV encoding (default: auto)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        properties = parse_listings_csv(args.csv_path.read_bytes(), encoding=args.encoding)
    except (OSError, ValueError) as e:
        print(f"Failed to read listings: {e}", file=sys.stderr)
        return 1

    print(f"Geocode listings: {len(properties)} properties from {args.csv_path}", file=sys.stderr)
    init_cache()
    resolver = GeocodeResolver(create_geocoder())
    results = asyncio.run(resolver.resolve_all(properties, print_progress))
    print(file=sys.stderr)

    payload = [r.model_dump(mode="json") for r in results]
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
    else:
        print(text)

    resolved = sum(1 for r in results if r.resolved)
    stats = get_cache_stats()
    print("Geocode listings complete.", file=sys.stderr)
    print(f"  resolved: {resolved} (unresolved: {len(results) - resolved})", file=sys.stderr)
    print(f"  cache entries: {stats['total_entries']} (hits: {stats['hits']})", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())
