#!/usr/bin/env python3
"""
Dev helper: send a sample royalty calculation to the local backend.

Builds a lifetime-mode contract with a two-tier physical schedule and an
outstanding advance, a handful of sales and one approved return, and
POST-s it to /api/royalties/calculate.

Usage
-----
# Dry run against localhost:8000
python scripts/dry_run_calculation.py

# Ask for a commit plan as well
python scripts/dry_run_calculation.py --mode commit

# Pretend 450 units were already sold before the period
python scripts/dry_run_calculation.py --lifetime-units 450

# Only print the request body
python scripts/dry_run_calculation.py --print-only
"""

import argparse
import json
import sys
import textwrap
from pathlib import Path

import httpx
from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Sample request
# ---------------------------------------------------------------------------

def _build_request(mode: str, lifetime_units: int, advance_recouped: str) -> dict:
    """Return a CalculationRequest body with a tier crossover inside the period."""
    return {
        "contract": {
            "id": "c-sample",
            "title_id": "t-sample",
            "author_id": "a-sample",
            "status": "active",
            "advance_amount": "2000.00",
            "advance_recouped": advance_recouped,
            "tier_calculation_mode": "lifetime",
            "tiers": [
                {"format": "physical", "min_quantity": 0, "max_quantity": 499, "rate": "0.10"},
                {"format": "physical", "min_quantity": 500, "max_quantity": None, "rate": "0.12"},
                {"format": "ebook", "min_quantity": 0, "max_quantity": None, "rate": "0.25"},
            ],
        },
        "sales": [
            {"format": "physical", "quantity": 120, "unit_price": "20.00",
             "transaction_date": "2026-01-15", "channel": "retail"},
            {"format": "physical", "quantity": 80, "unit_price": "18.00",
             "transaction_date": "2026-02-10", "channel": "online"},
            {"format": "ebook", "quantity": 300, "unit_price": "9.99",
             "transaction_date": "2026-03-01", "channel": "online"},
        ],
        "returns": [
            {"format": "physical", "quantity": 5, "unit_price": "20.00",
             "transaction_date": "2026-03-20", "status": "approved", "reason": "damaged"},
        ],
        "period_start": "2026-01-01",
        "period_end": "2026-03-31",
        "as_of_date": "2026-03-31",
        "lifetime_before": {
            "physical": {"quantity": lifetime_units, "revenue": str(lifetime_units * 20)},
        },
        "mode": mode,
    }


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")

    parser = argparse.ArgumentParser(
        prog="dry_run_calculation.py",
        description="Send a sample royalty calculation to the Royalty Engine backend.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/dry_run_calculation.py
              python scripts/dry_run_calculation.py --mode commit
              python scripts/dry_run_calculation.py --lifetime-units 450
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8000",
        help="Backend base URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--mode",
        default="dry_run",
        choices=["dry_run", "commit"],
        help="Calculation mode (default: dry_run)",
    )
    parser.add_argument(
        "--lifetime-units",
        type=int,
        default=450,
        help="Physical units sold before the period (default: 450)",
    )
    parser.add_argument(
        "--advance-recouped",
        default="500.00",
        help="Advance already recouped on the contract (default: 500.00)",
    )
    parser.add_argument(
        "--print-only",
        action="store_true",
        help="Print the request body without sending it.",
    )

    args = parser.parse_args()

    if args.lifetime_units < 0:
        print("ERROR: --lifetime-units cannot be negative", file=sys.stderr)
        return 1

    payload = _build_request(args.mode, args.lifetime_units, args.advance_recouped)
    endpoint = f"{args.url.rstrip('/')}/api/royalties/calculate"

    print(f"Endpoint : {endpoint}")
    print(f"Mode     : {args.mode}")

    if args.print_only:
        print(json.dumps(payload, indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=payload, timeout=30)
    except httpx.HTTPError as e:
        print(f"ERROR: Request failed: {e}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())
