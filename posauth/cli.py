#!/usr/bin/env python3
"""
Generate bcrypt PIN hashes and optionally provision accounts.

Usage:
    posauth-hash-pin 5678
    posauth-hash-pin 1234 --seed --employee-id 1234567 --role admin \\
        --first-name Ada --last-name Lovelace
"""

import argparse
import asyncio
import sys

import redis.asyncio as redis

from posauth.modules.config import get_config
from posauth.modules.credentials import hash_pin
from posauth.modules.credentials.verifier import DEFAULT_ROUNDS
from posauth.modules.api.models import EMPLOYEE_ID_PATTERN, PIN_PATTERN
from posauth.modules.storage import Account, RedisAccountStore, Role


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hash an employee PIN with bcrypt")
    parser.add_argument("pin", help="4-7 digit PIN")
    parser.add_argument("--rounds", type=int, default=DEFAULT_ROUNDS, help="bcrypt cost factor")
    parser.add_argument("--seed", action="store_true", help="Write the account to the Redis store")
    parser.add_argument("--employee-id", help="7-digit employee identifier (with --seed)")
    parser.add_argument("--role", choices=[r.value for r in Role], default=Role.CASHIER.value)
    parser.add_argument("--first-name", default="")
    parser.add_argument("--last-name", default="")
    return parser


async def seed_account(account: Account) -> None:
    config = get_config()
    client = redis.from_url(
        config.redis_url,
        password=config.get("redis_password"),
        encoding="utf-8",
        decode_responses=True,
    )
    try:
        await RedisAccountStore(client).save(account)
    finally:
        await client.aclose()


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    if not PIN_PATTERN.match(args.pin):
        print("PIN must be 4-7 digits", file=sys.stderr)
        return 2

    pin_hash = hash_pin(args.pin, rounds=args.rounds)

    if not args.seed:
        print(pin_hash)
        return 0

    if not args.employee_id or not EMPLOYEE_ID_PATTERN.match(args.employee_id):
        print("--seed requires a 7-digit --employee-id", file=sys.stderr)
        return 2

    account = Account(
        employee_id=args.employee_id,
        pin_hash=pin_hash,
        role=Role(args.role),
        first_name=args.first_name,
        last_name=args.last_name,
    )
    asyncio.run(seed_account(account))
    print(f"Seeded {account.role.value} account {account.employee_id}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
