# app/services/season_service.py
"""
Season passes: a short token that pre-fills check-in for a known vehicle.
Creating a pass for a vehicle replaces any earlier pass for that vehicle.
"""

import uuid
from typing import Optional
from urllib.parse import urlencode
from app.exceptions import ValidationError
from app.services.record_store import RecordStore, SeasonPass
from app.utils.logger import get_logger, mask_mobile

logger = get_logger(__name__)


def create_season_pass(store: RecordStore, vehicle_no: str, mobile: str) -> SeasonPass:
    if not vehicle_no or not mobile or not str(vehicle_no).strip() or not str(mobile).strip():
        raise ValidationError("Missing")
    vehicle_no = str(vehicle_no).strip().upper()
    token = uuid.uuid4().hex[:8]
    season = SeasonPass(id=f"season-{token}", vehicle_no=vehicle_no,
                        mobile=str(mobile).strip(), token=token)

    passes = [p for p in store.read_season_passes() if p.vehicle_no != vehicle_no]
    passes.append(season)
    store.write_season_passes(passes)
    logger.info(f"[SEASON] Pass {token} for {vehicle_no} ({mask_mobile(mobile)})")
    return season


def find_season_pass(store: RecordStore, token: str) -> Optional[SeasonPass]:
    return next((p for p in store.read_season_passes() if p.token == token), None)


def prefill_url(season: SeasonPass) -> str:
    query = urlencode({"vehicleNo": season.vehicle_no, "mobile": season.mobile, "season": 1})
    return f"/index.html?{query}"
