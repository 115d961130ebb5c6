# app/routers/season.py
"""
Season passes.
POST /api/season     — create (or replace) the pass for a vehicle, returns the QR target URL
GET  /season/{token} — tiny HTML page redirecting to the pre-filled check-in form
"""

from html import escape
from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from app.dependencies import get_store
from app.schemas.parking import SeasonPassCreate
from app.services.record_store import RecordStore
from app.services.season_service import create_season_pass, find_season_pass, prefill_url

router = APIRouter()
page_router = APIRouter()


@router.post("/season", summary="Create a season pass QR link")
def create_season(body: SeasonPassCreate, request: Request, store: RecordStore = Depends(get_store)):
    season = create_season_pass(store, body.vehicle_no, body.mobile)
    qr_url = str(request.url_for("season_page", token=season.token))
    return {"ok": True, "qrUrl": qr_url}


@page_router.get("/season/{token}", response_class=HTMLResponse, name="season_page",
                 include_in_schema=False)
def season_page(token: str, store: RecordStore = Depends(get_store)):
    season = find_season_pass(store, token)
    if not season:
        return HTMLResponse("Not found", status_code=404)
    target = escape(prefill_url(season), quote=True)
    return HTMLResponse(
        f'<html><head><meta http-equiv="refresh" content="0;url={target}"/></head>'
        "<body>Redirecting...</body></html>"
    )
