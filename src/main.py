"""CLI entrypoint for offline swap estimation over a JSON snapshot."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from client import SwapClient
from core.base_types import format_decimal
from core.errors import SwapCoreError
from pricing.route import ALGORITHMS


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Runes swap estimator CLI")
    parser.add_argument(
        "--snapshot",
        required=True,
        help="Path to JSON file with 'pools', 'coins' and optional 'userShares'",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logs")
    subparsers = parser.add_subparsers(dest="command", required=True)

    estimate = subparsers.add_parser("estimate", help="Estimate a swap")
    estimate.add_argument("--from", dest="input_coin", required=True)
    estimate.add_argument("--to", dest="output_coin", required=True)
    estimate.add_argument("--amount", required=True, help="Human input amount")
    estimate.add_argument("--max-hops", type=int, default=6)
    estimate.add_argument("--algorithm", choices=list(ALGORITHMS), default="dfs")

    subparsers.add_parser("prices", help="USD price of every coin")

    compliance = subparsers.add_parser("compliance", help="Check pair compliance")
    compliance.add_argument("coin_a")
    compliance.add_argument("coin_b")

    deposit = subparsers.add_parser("deposit", help="Estimate a liquidity deposit")
    deposit.add_argument("coin_a")
    deposit.add_argument("coin_b")
    side = deposit.add_mutually_exclusive_group(required=True)
    side.add_argument("--amount-a")
    side.add_argument("--amount-b")

    subparsers.add_parser("shares", help="Underlying amounts of LP positions")
    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        snapshot = _load_json_object(args.snapshot)
        client = SwapClient()
        _load_snapshot(client, snapshot)

        if args.command == "estimate":
            estimate = client.estimate_swap(
                args.input_coin,
                args.output_coin,
                args.amount,
                max_hops=args.max_hops,
                algorithm=args.algorithm,
            )
            _print_json(estimate.to_dict())
            return

        if args.command == "prices":
            _print_json(
                {ticker: format_decimal(p) for ticker, p in client.prices().items()}
            )
            return

        if args.command == "compliance":
            _print_json(client.check_compliance(args.coin_a, args.coin_b).to_dict())
            return

        if args.command == "deposit":
            coin_a = _require_coin(client, args.coin_a)
            coin_b = _require_coin(client, args.coin_b)
            result = client.estimate_liquidity_deposit(
                coin_a, coin_b, amount_a=args.amount_a, amount_b=args.amount_b
            )
            _print_json(result.to_dict())
            return

        if args.command == "shares":
            _print_json([item.to_dict() for item in client.calculate_share_amounts()])
            return
    except (SwapCoreError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)


def _load_snapshot(client: SwapClient, snapshot: dict) -> None:
    client.sync.handle_event(
        "coins_updated", {"coins": snapshot.get("coins", []), "isInitial": True}
    )
    client.sync.handle_event(
        "pools_updated", {"pools": snapshot.get("pools", []), "isInitial": True}
    )
    client.sync.handle_event(
        "wallets_updated", {"wallets": snapshot.get("wallets", []), "isInitial": True}
    )
    client.sync.handle_event(
        "user_shares_updated",
        {"userShares": snapshot.get("userShares", []), "isInitial": True},
    )


def _require_coin(client: SwapClient, ticker: str):
    coin = client.coins.get_by_ticker(ticker)
    if coin is None:
        raise ValueError(f"Unknown coin: {ticker}")
    return coin


def _print_json(payload: object) -> None:
    print(json.dumps(payload, indent=2))


def _load_json_value(path: str) -> object:
    try:
        payload = Path(path).read_text(encoding="utf-8")
        data = json.loads(payload)
    except FileNotFoundError as exc:
        raise ValueError(f"JSON file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}") from exc
    return data


def _load_json_object(path: str) -> dict:
    data = _load_json_value(path)
    if not isinstance(data, dict):
        raise ValueError(f"JSON in {path} must be an object")
    return data


if __name__ == "__main__":
    main()
