# app/routers/parkings.py
"""Operator endpoints: record search, CSV export, daily report."""

from typing import Optional
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from app.dependencies import get_dispatcher, get_store
from app.schemas.parking import ParkingListOut
from app.services.notification_service import NotificationDispatcher
from app.services.record_store import RecordStore
from app.services import report_service

router = APIRouter()


@router.get("/parkings", response_model=ParkingListOut, summary="List / search parking records")
def list_parkings(q: Optional[str] = None, store: RecordStore = Depends(get_store)):
    """Filter by vehicle number (case-insensitive) or mobile substring."""
    data = report_service.search_records(store.read_all(), q)
    return {"count": len(data), "data": [r.to_dict() for r in data]}


@router.get("/export", summary="Download all records as CSV")
def export_parkings(store: RecordStore = Depends(get_store)):
    return Response(
        content=report_service.export_csv(store.read_all()),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=parkings.csv"},
    )


@router.get("/send-daily-report", summary="E-mail today's records as CSV")
async def send_daily_report(store: RecordStore = Depends(get_store),
                            dispatcher: NotificationDispatcher = Depends(get_dispatcher)):
    return await report_service.send_daily_report(store.read_all(), dispatcher)
