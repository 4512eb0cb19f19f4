"""Periodic settlement sweep using APScheduler."""

import asyncio
import logging
from typing import NoReturn, Optional

from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger

from solspore.config import Settings
from solspore.container import Container
from solspore.exceptions import RetryExhausted
from solspore.schemas.settlement import SettlementSummary
from solspore.utils.retry import with_retry
from solspore.utils.time_utils import utc_now

logger = logging.getLogger(__name__)


async def run_sweep(settings: Settings, container: Optional[Container] = None) -> SettlementSummary:
    """
    Start a container, run one settlement sweep, shut down.

    Startup is retried like the sweep's own connectivity check. A database that
    stays unreachable is reported in the summary, not raised.
    """
    container = container or Container(settings)
    started_at = utc_now()

    try:
        await with_retry(
            container.startup,
            "container startup",
            max_attempts=settings.settlement.db_connect_attempts,
            delay_seconds=settings.settlement.db_connect_delay_seconds,
        )
    except RetryExhausted as e:
        logger.error(f"Settlement sweep aborted, database unreachable: {e}")
        await container.shutdown()
        return SettlementSummary(database_unreachable=True, started_at=started_at, finished_at=utc_now())

    try:
        return await container.settlement.settle_expired_markets()
    finally:
        await container.shutdown()


async def _sweep(settings: Settings) -> None:
    summary = await run_sweep(settings)

    if summary.database_unreachable:
        logger.error("Settlement sweep skipped: database unreachable")
    elif summary.markets_failed or summary.bets_failed:
        logger.warning(
            f"Settlement sweep finished with failures: {summary.markets_failed} market(s), "
            f"{summary.bets_failed} bet(s)"
        )


def settlement_job(settings: Settings) -> None:
    """One sweep on a fresh event loop; the sweep itself never raises."""
    asyncio.run(_sweep(settings))


def start_scheduler(settings: Settings) -> NoReturn:
    """Start the blocking scheduler with the settlement sweep job."""
    scheduler = BlockingScheduler()

    scheduler.add_job(
        settlement_job,
        IntervalTrigger(minutes=settings.settlement.sweep_interval_minutes),
        args=[settings],
        id="settlement-sweep",
        name="Settlement: Expired Market Sweep",
        max_instances=1,
        coalesce=True,
    )
    logger.info(
        f"Registered job: Settlement Sweep (every {settings.settlement.sweep_interval_minutes} min)"
    )

    try:
        logger.info("✓ Scheduler starting...")
        logger.info(f"✓ {len(scheduler.get_jobs())} jobs registered")
        logger.info("Press Ctrl+C to stop\n")

        scheduler.start()

    except (KeyboardInterrupt, SystemExit):
        logger.info("\nReceived interrupt signal")
        scheduler.shutdown()
        logger.info("✓ Scheduler stopped cleanly")
