# app/services/checkin_service.py
"""
Reservation lifecycle: verified check-in → parking record with expiry.

Flow:
  1. OtpVerifier.verify_code   — NotRequested / TooManyAttempts / InvalidCode propagate
  2. paid_at = now, expires_at = now + duration_hours (wall clock)
  3. build the record (vehicle number upper-cased, flags False)
  4. RecordStore.append        — the check-in is successful from here on
  5. confirmation SMS + operator summary e-mail, failures only logged
"""

import math
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional
from app.config import settings
from app.exceptions import ValidationError
from app.services.notification_service import Channel, NotificationDispatcher
from app.services.otp_service import OtpVerifier
from app.services.record_store import ParkingRecord, RecordStore, iso_utc
from app.utils.logger import get_logger, mask_mobile

logger = get_logger(__name__)

CONFIRMATION_SMS = "Your vehicle {vehicle_no} is parked. Valid until {expires} UTC. Thank you."


def _blank(value) -> bool:
    return value is None or str(value).strip() == ""


def parse_amount(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValidationError("Invalid amount")
    if not math.isfinite(value) or value < 0:
        raise ValidationError("Invalid amount")
    return value


def parse_duration(duration_hours) -> float:
    """Hours as float; anything missing, non-numeric or not positive falls back to the default."""
    try:
        hours = float(duration_hours)
    except (TypeError, ValueError):
        return settings.DEFAULT_DURATION_HOURS
    if not math.isfinite(hours) or hours <= 0:
        return settings.DEFAULT_DURATION_HOURS
    return hours


def summary_html(rec: ParkingRecord) -> str:
    return (
        "<p>New parking record:</p><ul>"
        f"<li>ID: {rec.id}</li>"
        f"<li>Vehicle: {rec.vehicle_no} ({rec.vehicle_type})</li>"
        f"<li>Mobile: {rec.mobile}</li>"
        f"<li>Amount: ₹{rec.amount:g}</li>"
        f"<li>Expires: {iso_utc(rec.expires_at)}</li>"
        "</ul>"
    )


class CheckInService:
    def __init__(self, store: RecordStore, verifier: OtpVerifier,
                 dispatcher: NotificationDispatcher,
                 clock: Callable[[], datetime] = datetime.utcnow,
                 operator_email: Optional[str] = None):
        self.store = store
        self.verifier = verifier
        self.dispatcher = dispatcher
        self._clock = clock
        self.operator_email = operator_email or settings.EMAIL_TO

    async def check_in(self, vehicle_no, mobile, duration_hours, vehicle_type, amount, code,
                       note: Optional[str] = None) -> ParkingRecord:
        if any(_blank(v) for v in (vehicle_no, mobile, vehicle_type, amount, code)):
            raise ValidationError("Missing fields")
        amount = parse_amount(amount)
        hours = parse_duration(duration_hours)
        mobile = str(mobile).strip()

        self.verifier.verify_code(mobile, code)

        now = self._clock()
        record = ParkingRecord(
            id=str(uuid.uuid4()),
            vehicle_no=str(vehicle_no).strip().upper(),
            mobile=mobile,
            vehicle_type=str(vehicle_type).strip(),
            amount=amount,
            note=note or "",
            paid_at=now,
            expires_at=now + timedelta(hours=hours),
        )
        self.store.append(record)
        logger.info(
            f"[CHECK-IN] {record.vehicle_no} | mobile={mask_mobile(mobile)} | "
            f"{hours:g}h | until {iso_utc(record.expires_at)}"
        )

        await self._notify(record)
        return record

    async def _notify(self, record: ParkingRecord):
        await self._deliver(
            "Confirmation SMS", record,
            Channel.SMS, record.mobile,
            CONFIRMATION_SMS.format(vehicle_no=record.vehicle_no,
                                    expires=record.expires_at.strftime("%Y-%m-%d %H:%M")),
        )
        await self._deliver(
            "Summary e-mail", record,
            Channel.EMAIL, self.operator_email, summary_html(record),
            subject=f"New parking record: {record.vehicle_no}", html=True,
        )

    async def _deliver(self, label: str, record: ParkingRecord, *args, **kwargs):
        # The record is already stored; nothing from here may reach the caller
        try:
            result = await self.dispatcher.send(*args, **kwargs)
        except Exception as e:
            logger.error(f"[CHECK-IN] {label} for {record.id} raised: {e}", exc_info=True)
            return
        if not result.ok:
            logger.warning(f"[CHECK-IN] {label} for {record.id} failed: {result.error}")
