#!/usr/bin/env python3
"""
Command-line access to the asset movement ledger.

Every command goes through LedgerGateway, so role rules, validation and
error mapping are exactly those a transport layer gets.

Usage:
    python3 scripts/ledger_cli.py [--config PATH] [--db-url URL] COMMAND [options]

Examples:
    # Create the schema
    python3 scripts/ledger_cli.py init-db

    # Record a purchase as an admin
    python3 scripts/ledger_cli.py --user ops1 --role admin record \\
        --kind purchase --asset-type Weapon --asset-name M4 --quantity 10 --base Alpha

    # Transfer as a commander (source is forced to the home base)
    python3 scripts/ledger_cli.py --user cmd1 --role commander --home-base Alpha record \\
        --kind transfer --asset-type Weapon --asset-name M4 --quantity 4 --to-base Bravo

    # Balance for one base over January
    python3 scripts/ledger_cli.py balance --base Alpha --from 2024-01-01 --to 2024-01-31

    # History and filters
    python3 scripts/ledger_cli.py movements --kind transfer --base Alpha
    python3 scripts/ledger_cli.py filters
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# Demo movements recorded by ``seed`` (as the admin actor)
SEED_MOVEMENTS: tuple[dict[str, Any], ...] = (
    {"kind": "purchase", "assetType": "Weapon", "assetName": "M4 Carbine", "quantity": 10, "base": "Alpha"},
    {"kind": "purchase", "assetType": "Vehicle", "assetName": "Humvee", "quantity": 3, "base": "Bravo"},
    {"kind": "purchase", "assetType": "Ammunition", "assetName": "5.56mm", "quantity": 5000, "base": "Alpha"},
    {"kind": "transfer", "assetType": "Weapon", "assetName": "M4 Carbine", "quantity": 4, "fromBase": "Alpha", "toBase": "Bravo"},
    {"kind": "assignment", "assetType": "Weapon", "assetName": "M4 Carbine", "quantity": 3, "base": "Alpha", "assignedTo": "1st Platoon"},
    {"kind": "expenditure", "assetType": "Ammunition", "assetName": "5.56mm", "quantity": 1200, "base": "Alpha"},
)


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Asset movement ledger: record movements and read balances.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", type=Path, default=None, help="Ledger YAML config (default: packaged default).")
    parser.add_argument("--db-url", default=None, help="Override database.url from the config.")
    parser.add_argument("--user", default="cli", help="Acting user id (default: cli).")
    parser.add_argument(
        "--role",
        choices=["admin", "commander", "logistics"],
        default="admin",
        help="Acting role (default: admin).",
    )
    parser.add_argument("--home-base", default=None, help="Home base; required for commanders.")
    parser.add_argument("--log-level", default=None, help="Override logging.level from the config.")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create the ledger tables.")
    sub.add_parser("seed", help="Record a small demo data set.")

    record = sub.add_parser("record", help="Record one movement.")
    record.add_argument("--kind", required=True, help="purchase, transfer, assignment or expenditure.")
    record.add_argument("--asset-type", required=True)
    record.add_argument("--asset-name", required=True)
    record.add_argument("--quantity", required=True)
    record.add_argument("--base", default=None)
    record.add_argument("--from-base", default=None)
    record.add_argument("--to-base", default=None)
    record.add_argument("--assigned-to", default=None)
    record.add_argument("--expended-by", default=None)

    movements = sub.add_parser("movements", help="List movement history, newest first.")
    movements.add_argument("--kind", default=None)
    movements.add_argument("--asset-type", default=None)
    movements.add_argument("--base", default=None)
    movements.add_argument("--from", dest="date_from", default=None, help="YYYY-MM-DD or ISO datetime.")
    movements.add_argument("--to", dest="date_to", default=None, help="YYYY-MM-DD or ISO datetime.")
    movements.add_argument("--limit", type=int, default=None)

    balance = sub.add_parser("balance", help="Compute balance figures.")
    balance.add_argument("--asset-type", default=None)
    balance.add_argument("--base", default=None)
    balance.add_argument("--from", dest="date_from", default=None)
    balance.add_argument("--to", dest="date_to", default=None)

    sub.add_parser("filters", help="List known asset types and bases.")

    return parser.parse_args(argv)


def _print(body: Any) -> None:
    print(json.dumps(body, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    from asset_config import get_active_config
    from asset_kernel.db.engine import create_tables, init_engine
    from asset_kernel.db.immutability import register_immutability_listeners
    from asset_kernel.domain.values import Actor
    from asset_kernel.logging_config import configure_logging
    from asset_services.gateway import LedgerGateway

    config = get_active_config(args.config)
    configure_logging(level=args.log_level or config.logging.level, stream=sys.stderr)

    init_engine(config.database, url_override=args.db_url)
    register_immutability_listeners()

    if args.command == "init-db":
        create_tables()
        print("Ledger tables created.")
        return 0

    try:
        actor = Actor(user_id=args.user, role=args.role, home_base=args.home_base)
    except ValueError as exc:
        print(f"Invalid actor: {exc}", file=sys.stderr)
        return 2

    gateway = LedgerGateway.from_config(config)

    if args.command == "seed":
        for payload in SEED_MOVEMENTS:
            response = gateway.post_movement(actor, payload)
            if not response.is_success:
                _print(response.body)
                return 1
        print(f"Seeded {len(SEED_MOVEMENTS)} movements.")
        return 0

    if args.command == "record":
        response = gateway.post_movement(
            actor,
            {
                "kind": args.kind,
                "assetType": args.asset_type,
                "assetName": args.asset_name,
                "quantity": args.quantity,
                "base": args.base,
                "fromBase": args.from_base,
                "toBase": args.to_base,
                "assignedTo": args.assigned_to,
                "expendedBy": args.expended_by,
            },
        )
    elif args.command == "movements":
        response = gateway.get_movements(
            actor,
            {
                "kind": args.kind,
                "assetType": args.asset_type,
                "base": args.base,
                "from": args.date_from,
                "to": args.date_to,
                "limit": args.limit,
            },
        )
    elif args.command == "balance":
        response = gateway.get_balance(
            actor,
            {
                "assetType": args.asset_type,
                "base": args.base,
                "from": args.date_from,
                "to": args.date_to,
            },
        )
    else:
        response = gateway.get_filters(actor)

    _print(response.body)
    return 0 if response.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
