"""CLI entrypoint: scrape the tournament listings and write the snapshot."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from tournament_feed import config
from tournament_feed.pipeline import build_aggregator, build_clients, run_scrape


def _repo_root() -> Path:
    return Path(__file__).resolve().parent


def load_env(path: str = ".env", root_dir: Optional[Path] = None) -> None:
    """Optionally load a repo-root .env file without overriding real env vars."""
    root = Path(root_dir) if root_dir else _repo_root()
    env_path = (root / path).resolve()
    if not env_path.exists():
        return
    load_dotenv(dotenv_path=env_path, override=False)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scrape chess tournament listings into a JSON snapshot")
    parser.add_argument("--out", type=str, default=None, help="Snapshot path (default: data/tournaments.json)")
    parser.add_argument(
        "--cache-path",
        type=str,
        default=None,
        help="Geocoding cache path (default: data/geocoding_cache.json)",
    )
    parser.add_argument("--workers", type=int, default=None, help="Concurrent category walks (default: 2)")
    parser.add_argument(
        "--aggregate",
        action="store_true",
        help="Run the full source chain (snapshot, secondary, fallbacks) and print a summary instead of scraping",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    load_env()
    config.apply_env_overrides()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    snapshot_path = args.out or config.SNAPSHOT_PATH
    cache_path = args.cache_path or config.GEOCODE_CACHE_PATH

    try:
        if args.aggregate:
            clients = build_clients(cache_path)
            aggregator = build_aggregator(clients, snapshot_path=snapshot_path, workers=args.workers)
            tournaments = aggregator.aggregate()
            internal = sum(1 for t in tournaments if t.is_internal)
            print(f"Aggregated {len(tournaments)} tournaments ({internal} internal-only)")
            return 0

        payload = run_scrape(snapshot_path=snapshot_path, cache_path=cache_path, workers=args.workers)
    except Exception as exc:
        print(f"Scraping failed: {exc}", file=sys.stderr)
        return 1

    print(f"Scrape complete: {len(payload['tournaments'])} tournaments saved to {snapshot_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
