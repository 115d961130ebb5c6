# app/services/record_store.py
"""
Flat record storage for parking records, season passes and the OTP snapshot.

Every write is whole-collection: the table is cleared and re-filled in one
transaction, so callers do read_all → modify → write_all. There is no locking
between a request handler and the expiry scanner; whichever writes last wins.
"""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional
from sqlalchemy.exc import SQLAlchemyError
from app.database import SessionLocal
from app.exceptions import StoreIOError
from app.models.parking_record import ParkingRecordRow
from app.models.season_pass import SeasonPassRow
from app.models.otp_entry import OtpEntryRow
from app.utils.logger import get_logger

logger = get_logger(__name__)


def iso_utc(dt: datetime) -> str:
    """Render a naive UTC datetime as ISO-8601 with an explicit Z suffix."""
    return dt.replace(tzinfo=None).isoformat() + "Z"


@dataclass
class ParkingRecord:
    id: str
    vehicle_no: str
    mobile: str
    vehicle_type: str
    amount: float
    paid_at: datetime
    expires_at: datetime
    note: str = ""
    reminder_sent: bool = False
    overstay_notified: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "vehicleNo": self.vehicle_no,
            "mobile": self.mobile,
            "vehicleType": self.vehicle_type,
            "amount": self.amount,
            "note": self.note,
            "paidAt": iso_utc(self.paid_at),
            "expiresAt": iso_utc(self.expires_at),
            "reminderSent": self.reminder_sent,
            "overstayNotified": self.overstay_notified,
        }


@dataclass
class SeasonPass:
    id: str
    vehicle_no: str
    mobile: str
    token: str

    def to_dict(self) -> dict:
        return {"id": self.id, "vehicleNo": self.vehicle_no, "mobile": self.mobile,
                "token": self.token, "isSeason": True}


@dataclass
class OtpEntry:
    otp: str
    created_at: datetime
    attempts: int = 0


class RecordStore:
    """Whole-collection persistence on top of SQLAlchemy sessions."""

    def __init__(self, session_factory=SessionLocal):
        self._session_factory = session_factory

    # ── Parking records ───────────────────────────────────────────────────
    def read_all(self) -> list[ParkingRecord]:
        rows = self._read(ParkingRecordRow, ParkingRecordRow.position)
        return [
            ParkingRecord(
                id=r.id, vehicle_no=r.vehicle_no, mobile=r.mobile,
                vehicle_type=r.vehicle_type, amount=r.amount, note=r.note or "",
                paid_at=r.paid_at, expires_at=r.expires_at,
                reminder_sent=bool(r.reminder_sent),
                overstay_notified=bool(r.overstay_notified),
            )
            for r in rows
        ]

    def write_all(self, records: list[ParkingRecord]):
        self._replace(ParkingRecordRow, [
            ParkingRecordRow(position=i, **asdict(rec)) for i, rec in enumerate(records)
        ])

    def append(self, record: ParkingRecord):
        """Append then persist the whole collection."""
        records = self.read_all()
        records.append(record)
        self.write_all(records)
        logger.debug(f"Stored record {record.id} ({len(records)} total)")

    # ── Season passes ─────────────────────────────────────────────────────
    def read_season_passes(self) -> list[SeasonPass]:
        rows = self._read(SeasonPassRow, SeasonPassRow.position)
        return [SeasonPass(id=r.id, vehicle_no=r.vehicle_no, mobile=r.mobile, token=r.token)
                for r in rows]

    def write_season_passes(self, passes: list[SeasonPass]):
        self._replace(SeasonPassRow, [
            SeasonPassRow(position=i, **asdict(p)) for i, p in enumerate(passes)
        ])

    # ── OTP snapshot ──────────────────────────────────────────────────────
    def load_otps(self) -> dict[str, OtpEntry]:
        rows = self._read(OtpEntryRow, OtpEntryRow.mobile)
        return {r.mobile: OtpEntry(otp=r.otp, created_at=r.created_at, attempts=r.attempts or 0)
                for r in rows}

    def save_otps(self, entries: dict[str, OtpEntry]):
        self._replace(OtpEntryRow, [
            OtpEntryRow(mobile=mobile, **asdict(entry)) for mobile, entry in entries.items()
        ])

    def ping(self) -> bool:
        """Cheap connectivity check for /health."""
        self._read(OtpEntryRow, OtpEntryRow.mobile, limit=1)
        return True

    # ── Internals ─────────────────────────────────────────────────────────
    def _read(self, row_cls, order_by, limit: Optional[int] = None):
        db = self._session_factory()
        try:
            q = db.query(row_cls).order_by(order_by)
            if limit:
                q = q.limit(limit)
            return q.all()
        except SQLAlchemyError as e:
            logger.error(f"Read from {row_cls.__tablename__} failed: {e}", exc_info=True)
            raise StoreIOError() from e
        finally:
            db.close()

    def _replace(self, row_cls, rows):
        db = self._session_factory()
        try:
            db.query(row_cls).delete()
            db.add_all(rows)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Write to {row_cls.__tablename__} failed: {e}", exc_info=True)
            raise StoreIOError() from e
        finally:
            db.close()
