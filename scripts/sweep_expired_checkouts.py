"""Expire checkout intents still pending after the retention window.

Run from cron, e.g. hourly:
    python -m scripts.sweep_expired_checkouts --max-age-hours 24
"""

import argparse
import asyncio
import logging

from config.settings import settings
from src.ku_checkout.application.service import CheckoutApplicationService
from src.ku_common.database import async_session_factory, engine

logger = logging.getLogger("ku.sweep")


async def sweep(max_age_hours: int) -> int:
    service = CheckoutApplicationService()
    try:
        async with async_session_factory() as db:
            return await service.sweep(db, max_age_hours)
    finally:
        await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--max-age-hours",
        type=int,
        default=settings.CHECKOUT_RETENTION_HOURS,
        help="expire pending checkouts older than this (default: %(default)s)",
    )
    args = parser.parse_args()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    expired = asyncio.run(sweep(args.max_age_hours))
    logger.info("Expired %d pending checkouts", expired)


if __name__ == "__main__":
    main()
