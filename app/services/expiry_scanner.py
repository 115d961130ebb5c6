# app/services/expiry_scanner.py
"""
Background sweep over all parking records, every SCAN_INTERVAL_SECONDS.

Per record, two independent one-shot transitions:
  reminder  — not reminder_sent and 0 < expires_at - now <= REMINDER_WINDOW_MINUTES
  overstay  — not overstay_notified and now > expires_at
Each flag is set once a send has been attempted, whatever the outcome, so a
record gets at most one reminder and one overstay notice. A record whose
reminder window passed while the process was down only gets the overstay.

After the sweep the whole collection is written back in one batch.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional
from app.config import settings
from app.services.notification_service import Channel, NotificationDispatcher
from app.services.record_store import ParkingRecord, RecordStore
from app.utils.logger import get_logger, mask_mobile

logger = get_logger(__name__)

REMINDER_SMS = "Your parking for {vehicle_no} ends in {minutes} minute(s)."
OVERSTAY_SMS = "Your parking time for {vehicle_no} has expired. Please move your vehicle."


@dataclass
class ScanSummary:
    scanned: int = 0
    reminders: int = 0
    overstays: int = 0
    failures: int = 0


class ExpiryScanner:
    def __init__(self, store: RecordStore, dispatcher: NotificationDispatcher,
                 interval_seconds: int = settings.SCAN_INTERVAL_SECONDS,
                 reminder_window: timedelta = timedelta(minutes=settings.REMINDER_WINDOW_MINUTES),
                 clock: Callable[[], datetime] = datetime.utcnow):
        self.store = store
        self.dispatcher = dispatcher
        self.interval_seconds = interval_seconds
        self.reminder_window = reminder_window
        self._clock = clock
        self._task: Optional[asyncio.Task] = None
        self.last_run: Optional[datetime] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def sweep(self, now: Optional[datetime] = None) -> ScanSummary:
        now = now or self._clock()
        records = self.store.read_all()
        summary = ScanSummary(scanned=len(records))

        for rec in records:
            remaining = rec.expires_at - now

            if not rec.reminder_sent and timedelta(0) < remaining <= self.reminder_window:
                minutes = max(1, round(remaining.total_seconds() / 60))
                ok = await self._send(rec, REMINDER_SMS.format(vehicle_no=rec.vehicle_no,
                                                               minutes=minutes), "reminder")
                rec.reminder_sent = True
                summary.reminders += 1
                if not ok:
                    summary.failures += 1

            if now > rec.expires_at and not rec.overstay_notified:
                ok = await self._send(rec, OVERSTAY_SMS.format(vehicle_no=rec.vehicle_no),
                                      "overstay")
                rec.overstay_notified = True
                summary.overstays += 1
                if not ok:
                    summary.failures += 1

        # Whole-collection write: may overwrite a record appended mid-sweep
        self.store.write_all(records)
        self.last_run = now
        if summary.reminders or summary.overstays:
            logger.info(f"[SCAN] {summary}")
        return summary

    async def _send(self, rec: ParkingRecord, text: str, kind: str) -> bool:
        # A raising dispatcher must not abort the sweep before flags are written back
        try:
            result = await self.dispatcher.send(Channel.SMS, rec.mobile, text)
        except Exception as e:
            logger.error(f"[SCAN] {kind} for {rec.vehicle_no} raised: {e}", exc_info=True)
            return False
        if not result.ok:
            logger.warning(
                f"[SCAN] {kind} for {rec.vehicle_no} ({mask_mobile(rec.mobile)}) failed: {result.error}"
            )
        return result.ok

    # ── Lifecycle ─────────────────────────────────────────────────────────
    async def _run(self):
        logger.info(f"⏱  Expiry scanner started (every {self.interval_seconds}s)")
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep()
            except Exception as e:
                logger.error(f"[SCAN] Sweep failed: {e}", exc_info=True)

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="expiry-scanner")

    async def stop(self):
        if not self._task:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("⏱  Expiry scanner stopped")
