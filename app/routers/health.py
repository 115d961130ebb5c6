# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + record store + notification channels + scanner.
"""

from fastapi import APIRouter, Depends
from datetime import datetime
from app.dependencies import get_dispatcher, get_scanner, get_store
from app.exceptions import StoreIOError
from app.services.expiry_scanner import ExpiryScanner
from app.services.notification_service import NotificationDispatcher
from app.services.record_store import RecordStore, iso_utc

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(store: RecordStore = Depends(get_store),
                 dispatcher: NotificationDispatcher = Depends(get_dispatcher),
                 scanner: ExpiryScanner = Depends(get_scanner)):
    """
    Returns:
    - Backend status
    - Record store connectivity
    - Whether SMS / e-mail are live or log-only
    - Expiry scanner state and last sweep time
    """
    result = {
        "status": "ok",
        "timestamp": iso_utc(datetime.utcnow()),
        "backend": "ok",
        "database": "unknown",
        "channels": {
            "sms": "live" if dispatcher.sms_enabled else "log-only",
            "email": "live" if dispatcher.email_enabled else "log-only",
        },
        "scanner": {
            "running": scanner.running,
            "last_run": iso_utc(scanner.last_run) if scanner.last_run else None,
        },
    }

    try:
        store.ping()
        result["database"] = "ok"
    except StoreIOError as e:
        result["database"] = f"error: {e.__cause__ or e}"
        result["status"] = "degraded"

    return result
