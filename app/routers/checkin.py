# app/routers/checkin.py
"""
One-time code + check-in endpoints.
POST /request-otp — issue a code to the mobile
POST /verify-otp  — verify the code and create the parking record
Service errors (ParkingError) are turned into {"error": ...} by app.main.
"""

from fastapi import APIRouter, Depends
from app.dependencies import get_checkin_service, get_verifier
from app.schemas.parking import OtpRequest, CheckInRequest, CheckInResponse
from app.services.checkin_service import CheckInService
from app.services.otp_service import OtpVerifier

router = APIRouter()


@router.post("/request-otp", summary="Send a one-time code to a mobile number")
async def request_otp(body: OtpRequest, verifier: OtpVerifier = Depends(get_verifier)):
    await verifier.request_code(body.mobile)
    return {"ok": True}


@router.post("/verify-otp", response_model=CheckInResponse, summary="Verify code and check in")
async def verify_otp(body: CheckInRequest, service: CheckInService = Depends(get_checkin_service)):
    record = await service.check_in(
        vehicle_no=body.vehicle_no,
        mobile=body.mobile,
        duration_hours=body.duration_hours,
        vehicle_type=body.vehicle_type,
        amount=body.amount,
        code=body.otp,
        note=body.note,
    )
    return {"ok": True, "record": record.to_dict()}
