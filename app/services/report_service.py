# app/services/report_service.py
"""
CSV export of parking records and the daily report e-mail.
"""

import csv
import io
from datetime import date, datetime
from typing import Optional
from app.config import settings
from app.exceptions import DispatchError
from app.services.notification_service import Attachment, Channel, NotificationDispatcher
from app.services.record_store import ParkingRecord, iso_utc
from app.utils.logger import get_logger

logger = get_logger(__name__)

EXPORT_COLUMNS = ["id", "vehicleNo", "mobile", "vehicleType", "amount", "paidAt", "expiresAt", "note"]
REPORT_COLUMNS = ["ID", "Vehicle", "Mobile", "Type", "Amount", "PaidAt", "ExpiresAt"]


def _row(rec: ParkingRecord, with_note: bool) -> list:
    row = [rec.id, rec.vehicle_no, rec.mobile, rec.vehicle_type, f"{rec.amount:g}",
           iso_utc(rec.paid_at), iso_utc(rec.expires_at)]
    return row + [rec.note] if with_note else row


def to_csv(header: list[str], rows: list[list]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(header)
    writer.writerows(rows)
    return buf.getvalue()


def export_csv(records: list[ParkingRecord]) -> str:
    return to_csv(EXPORT_COLUMNS, [_row(r, with_note=True) for r in records])


def search_records(records: list[ParkingRecord], q: Optional[str]) -> list[ParkingRecord]:
    """Case-insensitive match on vehicle number, substring match on mobile."""
    q = (q or "").strip().lower()
    if not q:
        return records
    return [r for r in records if q in r.vehicle_no.lower() or q in r.mobile]


def daily_report_csv(records: list[ParkingRecord], day: date) -> str:
    todays = [r for r in records if r.paid_at.date() == day]
    return to_csv(REPORT_COLUMNS, [_row(r, with_note=False) for r in todays])


async def send_daily_report(records: list[ParkingRecord], dispatcher: NotificationDispatcher,
                            day: Optional[date] = None) -> dict:
    """
    E-mail today's records as CSV to the operator.
    Without a configured mailer the CSV is returned in the response instead.
    Raises DispatchError when the mailer is configured but sending fails.
    """
    day = day or datetime.utcnow().date()
    content = daily_report_csv(records, day)
    if not dispatcher.email_enabled:
        return {"ok": True, "csv": content}

    result = await dispatcher.send(
        Channel.EMAIL, settings.EMAIL_TO, "See attached CSV",
        subject=f"Daily Parking Report - {day.isoformat()}",
        attachments=[Attachment(filename=f"report-{day.isoformat()}.csv", content=content)],
    )
    if not result.ok:
        logger.warning(f"[REPORT] Daily report e-mail failed: {result.error}")
        raise DispatchError("Email failed")
    logger.info(f"[REPORT] Daily report for {day.isoformat()} sent to {settings.EMAIL_TO}")
    return {"ok": True}
