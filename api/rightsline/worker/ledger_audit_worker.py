"""
Ledger Audit Worker

Background service that periodically reconciles the points ledger:
- Recomputes every user's balance from user_points and user_points_deductions
- Logs a warning for each user whose derived balance is negative

The ledger is append-only, so the worker never writes; it only reports.

Uses APScheduler for job scheduling.
"""
import asyncio
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from rightsline.config import settings
from rightsline.logging_config import setup_logging
from rightsline.services.ledger_service import LedgerService

logger = logging.getLogger('ledger_audit_worker')


class LedgerAuditWorker:
    """Background worker for ledger reconciliation."""

    def __init__(self, database_url: str | None = None):
        self.engine = create_async_engine(database_url or settings.database_url, echo=False)
        self.async_session = async_sessionmaker(
            self.engine, expire_on_commit=False
        )
        self.scheduler = AsyncIOScheduler()

    async def start(self):
        """Start the worker and scheduler."""
        logger.info('Starting Ledger Audit Worker...')

        self.scheduler.add_job(
            self.run_audit,
            IntervalTrigger(minutes=settings.ledger_audit_interval_minutes),
            id='ledger_audit',
            name='Points Ledger Audit',
            replace_existing=True,
        )

        self.scheduler.start()
        logger.info('Scheduler started. Jobs:')
        for job in self.scheduler.get_jobs():
            logger.info(f'  - {job.name}: next run at {job.next_run_time}')

        # Keep running
        try:
            while True:
                await asyncio.sleep(60)
        except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
            logger.info('Shutting down...')
            self.scheduler.shutdown()
            await self.engine.dispose()

    async def run_audit(self) -> list[tuple[int, int]]:
        """Report users whose derived balance is below zero."""
        logger.info('Running ledger audit...')
        try:
            async with self.async_session() as db:
                negatives = await LedgerService(db).negative_balances()
        except Exception as e:
            logger.error(f'Ledger audit failed: {e}', exc_info=True)
            return []

        for user_id, balance in negatives:
            logger.warning(f'User {user_id} has a negative points balance: {balance}')
        logger.info(f'Ledger audit done: {len(negatives)} negative balance(s)')
        return negatives


async def main():
    setup_logging()
    worker = LedgerAuditWorker()
    await worker.start()


if __name__ == '__main__':
    asyncio.run(main())
