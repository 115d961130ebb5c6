# app/services/otp_service.py
"""
One-time code issue + verification, keyed by mobile number.

Codes live in an in-memory OtpStore that is snapshotted to the record store
after every mutation and at shutdown, and loaded at startup. A restart can
therefore lose nothing newer than the last snapshot.

Codes do not expire by time. They die on successful use, on replacement by a
new request, or after OTP_MAX_ATTEMPTS wrong guesses.
"""

import secrets
from datetime import datetime
from typing import Callable, Optional
from app.config import settings
from app.exceptions import ValidationError, NotRequested, InvalidCode, TooManyAttempts
from app.services.notification_service import Channel, NotificationDispatcher
from app.services.record_store import OtpEntry, RecordStore
from app.utils.logger import get_logger, mask_mobile

logger = get_logger(__name__)


def generate_code() -> str:
    """Uniformly random 6-digit code, 100000–999999."""
    return str(100000 + secrets.randbelow(900000))


class OtpStore:
    """In-memory OTP map with an explicit load/snapshot lifecycle."""

    def __init__(self, store: RecordStore):
        self._store = store
        self._entries: dict[str, OtpEntry] = {}

    def load(self):
        self._entries = self._store.load_otps()
        logger.info(f"Loaded {len(self._entries)} pending OTP(s) from snapshot")

    def snapshot(self):
        self._store.save_otps(self._entries)

    def get(self, mobile: str) -> Optional[OtpEntry]:
        return self._entries.get(mobile)

    def put(self, mobile: str, entry: OtpEntry):
        self._entries[mobile] = entry

    def remove(self, mobile: str):
        self._entries.pop(mobile, None)

    def __len__(self):
        return len(self._entries)


class OtpVerifier:
    def __init__(self, otps: OtpStore, dispatcher: NotificationDispatcher,
                 max_attempts: int = settings.OTP_MAX_ATTEMPTS,
                 clock: Callable[[], datetime] = datetime.utcnow,
                 code_factory: Callable[[], str] = generate_code):
        self.otps = otps
        self.dispatcher = dispatcher
        self.max_attempts = max_attempts
        self._clock = clock
        self._code_factory = code_factory

    async def request_code(self, mobile: str):
        """Issue a fresh code (replacing any earlier one) and text it to the mobile."""
        mobile = str(mobile or "").strip()
        if not mobile:
            raise ValidationError("Missing mobile")

        code = self._code_factory()
        self.otps.put(mobile, OtpEntry(otp=code, created_at=self._clock(), attempts=0))
        self.otps.snapshot()
        logger.info(f"[OTP] Issued code for {mask_mobile(mobile)}")

        try:
            result = await self.dispatcher.send(Channel.SMS, mobile, f"Your parking OTP is {code}")
        except Exception as e:
            logger.error(f"[OTP] SMS to {mask_mobile(mobile)} raised: {e}", exc_info=True)
            return
        if not result.ok:
            logger.warning(f"[OTP] SMS to {mask_mobile(mobile)} failed: {result.error}")

    def verify_code(self, mobile: str, code: str) -> bool:
        """
        Check `code` for `mobile`. Returns True when the code is consumed.
        Raises NotRequested, TooManyAttempts or InvalidCode otherwise.
        """
        mobile = str(mobile or "").strip()
        entry = self.otps.get(mobile)
        if entry is None:
            raise NotRequested()
        if entry.attempts >= self.max_attempts:
            logger.warning(f"[OTP] {mask_mobile(mobile)} locked after {entry.attempts} attempts")
            raise TooManyAttempts()
        if entry.otp != str(code).strip():
            entry.attempts += 1
            self.otps.snapshot()
            logger.info(f"[OTP] Wrong code for {mask_mobile(mobile)} (attempt {entry.attempts})")
            raise InvalidCode()

        self.otps.remove(mobile)
        self.otps.snapshot()
        return True
