"""Run a single address search from the command line.

Usage:
    python -m atlaskit.scripts.search_cli "10 Downing St" --provider google --api-key <key>
    python -m atlaskit.scripts.search_cli "LE12 6TE" --provider getaddress --json

Provider and API keys default to ATLASKIT_PROVIDER / ATLASKIT_*_API_KEY.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
from typing import List, Optional

from atlaskit.domain.errors import ErrorKind
from atlaskit.domain.models import AddressRecord, provider_from_name
from atlaskit.services.search_controller import SearchController
from atlaskit.settings import settings

logger = logging.getLogger("atlaskit.search_cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Look up addresses through a geocoding provider.")
    parser.add_argument("term", help="Address, place or postcode to search for.")
    parser.add_argument(
        "--provider",
        choices=["local", "apple", "google", "getaddress"],
        default=settings.PROVIDER,
        help="Backend to query.",
    )
    parser.add_argument("--api-key", default=None, help="Credential for remote providers.")
    parser.add_argument("--json", action="store_true", help="Print records as a JSON array.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for the result (default: wait indefinitely).",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    api_key = args.api_key or settings.api_key_for(args.provider)
    provider = provider_from_name(args.provider, api_key)

    done = threading.Event()
    outcome: dict = {}

    def on_complete(records: Optional[List[AddressRecord]], error: Optional[ErrorKind]) -> None:
        outcome["records"] = records
        outcome["error"] = error
        done.set()

    with SearchController(provider) as controller:
        controller.search(args.term, on_complete)
        if not done.wait(args.timeout):
            print("Search timed out", file=sys.stderr)
            return 1

    error = outcome.get("error")
    if error is not None:
        print(f"Search failed: {error.value}", file=sys.stderr)
        return 1

    records = outcome.get("records") or []
    if args.json:
        print(json.dumps([r.as_dict() for r in records], indent=2))
    else:
        for record in records:
            print(record.formatted_address)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
