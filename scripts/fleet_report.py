#!/usr/bin/env python3
"""Print a maintenance risk report for every cart in the fleet.

Fetches all carts through the resilient client, scores each one, and
lists them from highest to lowest maintenance probability.

Usage
-----
Install the package, set environment variables and run::

    pip install -e .
    export CARTFLEET_URL="https://<project>.supabase.co"
    export CARTFLEET_API_KEY="<anon key>"
    python scripts/fleet_report.py

Options::

    --store STORE_ID     Only report carts of this store
    --json               Output as machine-readable JSON
    --min-probability P  Hide carts scoring below P (default: 0)
    -v, --verbose        Enable DEBUG logging
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from cartfleet import CartFleetClient, CartFleetConfig, CartFleetError, predict_fleet


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cart fleet maintenance report")
    parser.add_argument("--store", dest="store_id", default=None, help="Only report this store id")
    parser.add_argument("--json", dest="json_mode", action="store_true", help="Output JSON")
    parser.add_argument("--min-probability", type=float, default=0.0)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


async def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = CartFleetConfig.from_env()
        async with CartFleetClient(config) as client:
            carts = await client.fetch_carts(store_id=args.store_id)
        predictions = predict_fleet(carts)
    except CartFleetError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    by_id = {cart.id: cart for cart in carts}
    ranked = sorted(
        (item for item in predictions.items() if item[1].maintenance_probability >= args.min_probability),
        key=lambda item: item[1].maintenance_probability,
        reverse=True,
    )

    if args.json_mode:
        rows = [
            {
                "id": cart_id,
                "qr_code": by_id[cart_id].qr_code,
                "store": by_id[cart_id].store,
                "status": by_id[cart_id].status.value,
                **prediction.model_dump(mode="json"),
            }
            for cart_id, prediction in ranked
        ]
        print(json.dumps(rows, indent=2, ensure_ascii=False))
        return 0

    print(f"{'QR code':<16} {'store':<20} {'status':<12} {'risk':>6} {'level':<9} {'due in':>8}")
    for cart_id, prediction in ranked:
        cart = by_id[cart_id]
        due = "-" if prediction.days_until_maintenance is None else f"{prediction.days_until_maintenance}d"
        print(
            f"{cart.qr_code:<16} {cart.store:<20} {cart.status.value:<12} "
            f"{prediction.maintenance_probability:>6.0%} {prediction.risk_level.value:<9} {due:>8}"
        )
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
