"""
Demo: round-trip two coffees through the coffee table.

Behavior
--------
- Insert espresso (100.00) and latte (150.00).
- Log every coffee sorted by name.
- Reprice latte to 175.00 and save it with a later update time.
- Log the coffees named latte.
- Delete everything.

Usage
-----
coffee-demo --create-table --endpoint-url http://localhost:8000

Optional flags:
  --table coffee
  --region us-east-1
  --currency TWD
  --pause 1

Notes
-----
- Reads COFFEE_TABLE, AWS_REGION, DYNAMODB_ENDPOINT_URL, COFFEE_CURRENCY and
  LOG_LEVEL from the environment as defaults.
- Expects AWS credentials in the environment (any value works for DynamoDB Local).
"""
from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import Any, Dict, List, Optional

from coffee_store.coffee import Coffee
from coffee_store.database import (
    CoffeeData,
    DynamoConfig,
    MoneyCodec,
    RepositoryError,
    create_coffee_table,
)
from coffee_store.money import Money, MoneyError
from coffee_store.ports import CoffeeRepository, Sort


logger = logging.getLogger("coffee_demo")


def configure_logging(level: Optional[str] = None) -> None:
    if logger.handlers:
        return
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())


def run_demo(repo: CoffeeRepository, currency: str = "TWD", pause: float = 0.0) -> Dict[str, Any]:
    """Run the insert / list / update / query / delete sequence against ``repo``.

    Returns what was observed at each step so callers can check it.
    """
    espresso = Coffee.create("espresso", Money.of("100.00", currency))
    latte = Coffee.create("latte", Money.of("150.00", currency))

    repo.insert_all([espresso, latte])
    saved: List[Coffee] = repo.find_all(Sort.by("name"))
    for coffee in saved:
        logger.info("Saved Coffee %s", coffee)
    logger.info("Menu by name:\n%s", repo.find_all_df(Sort.by("name")).to_string(index=False))

    if pause > 0:
        time.sleep(pause)
    latte.reprice(Money.of("175.00", currency))
    repo.save(latte)

    lattes = repo.find_by_name("latte")
    for coffee in lattes:
        logger.info("Coffee %s", coffee)

    deleted = repo.delete_all()
    logger.info("Deleted %d coffees", deleted)
    return {"saved": saved, "lattes": lattes, "deleted": deleted}


def main(argv: Optional[List[str]] = None) -> int:
    env = DynamoConfig.from_env()
    parser = argparse.ArgumentParser(description="Coffee table round-trip demo")
    parser.add_argument("--table", default=env.table_name)
    parser.add_argument("--region", default=env.region)
    parser.add_argument("--endpoint-url", default=env.endpoint_url)
    parser.add_argument("--currency", help="Currency of stored prices (default: COFFEE_CURRENCY or TWD)")
    parser.add_argument("--pause", type=float, default=0.0, help="Seconds to wait before the update")
    parser.add_argument("--create-table", action="store_true", help="Create the table if missing")
    args = parser.parse_args(argv)

    configure_logging()
    config = DynamoConfig(table_name=args.table, region=args.region, endpoint_url=args.endpoint_url)
    try:
        if args.create_table:
            create_coffee_table(config)
        codec = MoneyCodec(currency=args.currency) if args.currency else MoneyCodec.from_env()
        repo = CoffeeData.from_config(config, codec=codec)
        run_demo(repo, currency=codec.currency, pause=args.pause)
    except KeyboardInterrupt:
        logger.info("Exiting on user interrupt.")
        return 130
    except (RepositoryError, MoneyError) as exc:
        logger.exception("Demo failed: %s", str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
