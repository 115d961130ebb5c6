# app/dependencies.py
"""
Process-wide service instances, exposed as FastAPI dependencies.
Tests swap them through app.dependency_overrides.
"""

from app.services.checkin_service import CheckInService
from app.services.expiry_scanner import ExpiryScanner
from app.services.notification_service import NotificationDispatcher
from app.services.otp_service import OtpStore, OtpVerifier
from app.services.record_store import RecordStore

store = RecordStore()
dispatcher = NotificationDispatcher()
otp_store = OtpStore(store)
verifier = OtpVerifier(otp_store, dispatcher)
checkin_service = CheckInService(store, verifier, dispatcher)
scanner = ExpiryScanner(store, dispatcher)


def get_store() -> RecordStore:
    return store


def get_dispatcher() -> NotificationDispatcher:
    return dispatcher


def get_verifier() -> OtpVerifier:
    return verifier


def get_checkin_service() -> CheckInService:
    return checkin_service


def get_scanner() -> ExpiryScanner:
    return scanner
