"""Background reminder sweep for Email Reminder Service.

The sweep runs inside the API process as an asyncio task. Each firing:
- Loads UNSEEN tracked emails older than the reminder threshold
- Sends one reminder per (record, recipient) pair to the configured members
- Logs send failures and moves on, with no retry

Firings never overlap: if one is still running when the next is due, the new
one is skipped. Nothing is persisted between firings; a record stays eligible
until it is acknowledged.
"""

import asyncio
from datetime import timedelta
from typing import Callable, List, Optional

import crud
import database
from logger_config import setup_logger
from notifier import Notifier, build_notifier

logger = setup_logger(__name__, 'worker.log')


class ReminderSweep:
    """One reminder pass over the record store, guarded against overlap.

    Args:
        session_factory: Callable returning a new SQLAlchemy session
        notifier: Reminder sender
        recipients: Addresses that receive every reminder (0-3)
        threshold: Minimum record age before reminders start
    """

    def __init__(
        self,
        session_factory: Callable,
        notifier: Notifier,
        recipients: List[str],
        threshold: timedelta = timedelta(days=31)
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.recipients = list(recipients)
        self.threshold = threshold
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    def _load_stale(self) -> list:
        db = self.session_factory()
        try:
            records = crud.get_stale_unseen(db, self.threshold)
            # Detach plain values so the session can close before sending
            return [record.id for record in records]
        finally:
            db.close()

    async def run_once(self) -> Optional[int]:
        """Run one sweep.

        Returns:
            Number of send calls issued, or None if skipped because a
            previous sweep is still running
        """
        if self._lock.locked():
            logger.warning("Previous reminder sweep still running, skipping this one")
            return None

        async with self._lock:
            logger.info(f"Running reminder sweep (threshold: {self.threshold.days} days)")

            try:
                stale_ids = await asyncio.to_thread(self._load_stale)
            except Exception as e:
                logger.error(f"Error loading stale emails: {str(e)}", exc_info=True)
                return 0

            if not stale_ids:
                logger.info("No pending emails found for notification.")
                return 0

            if not self.recipients:
                logger.info("No members configured to receive reminder emails.")
                return 0

            logger.info(
                f"Found {len(stale_ids)} stale email(s), notifying {len(self.recipients)} member(s)"
            )

            sent = 0
            failed = 0
            for record_id in stale_ids:
                for recipient in self.recipients:
                    if await self.notifier.send_reminder(recipient, record_id):
                        sent += 1
                    else:
                        failed += 1

            logger.info(f"Reminder sweep finished: {sent} sent, {failed} failed")
            return sent + failed


async def _wait_for_stop(stop_event: asyncio.Event, timeout: float) -> bool:
    try:
        await asyncio.wait_for(stop_event.wait(), timeout=timeout)
    except asyncio.TimeoutError:
        return False
    return True


async def worker_loop(
    sweep: ReminderSweep,
    interval: float,
    stop_event: asyncio.Event,
    wait_first: bool = True
):
    """Run ``sweep`` every ``interval`` seconds until ``stop_event`` is set.

    With ``wait_first`` the first firing comes one interval after start, so
    restarts don't send a round of reminders immediately.

    Each firing is started as its own task so a slow sweep cannot delay the
    schedule; the sweep's own guard skips firings that would overlap.
    """
    logger.info("Background worker started")
    logger.info(f"Check interval: {interval} seconds")

    pending = set()
    iteration = 0
    stopped = wait_first and await _wait_for_stop(stop_event, interval)
    while not stopped and not stop_event.is_set():
        iteration += 1
        task = asyncio.create_task(sweep.run_once(), name=f"reminder-sweep-{iteration}")
        pending.add(task)
        task.add_done_callback(pending.discard)
        task.add_done_callback(_log_sweep_failure)

        stopped = await _wait_for_stop(stop_event, interval)

    for task in list(pending):
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
    logger.info("Background worker shutting down gracefully")


def _log_sweep_failure(task: asyncio.Task):
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Error in reminder sweep {task.get_name()}: {str(exc)}", exc_info=exc)


def build_sweep(settings) -> ReminderSweep:
    """Wire the sweep from settings with the shared session factory."""
    return ReminderSweep(
        session_factory=database.SessionLocal,
        notifier=build_notifier(settings),
        recipients=settings.recipients,
        threshold=timedelta(days=settings.REMINDER_THRESHOLD_DAYS)
    )
