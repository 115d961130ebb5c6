# app/schemas/parking.py
# Request bodies use the camelCase names the check-in page sends.
# Every field is optional so missing values surface as a 400 "Missing fields"
# from the service layer instead of a 422 from FastAPI. Mobile and vehicle
# numbers are accepted as JSON numbers too and coerced to text downstream.
from pydantic import BaseModel, Field
from typing import Optional, Union


class OtpRequest(BaseModel):
    mobile: Optional[Union[str, int]] = None


class CheckInRequest(BaseModel):
    vehicle_no: Optional[Union[str, int]] = Field(None, alias="vehicleNo")
    mobile: Optional[Union[str, int]] = None
    duration_hours: Optional[Union[float, str]] = Field(None, alias="durationHours")
    vehicle_type: Optional[str] = Field(None, alias="vehicleType")
    amount: Optional[Union[float, str]] = None
    otp: Optional[Union[str, int]] = None
    note: Optional[str] = None

    class Config:
        populate_by_name = True


class SeasonPassCreate(BaseModel):
    vehicle_no: Optional[Union[str, int]] = Field(None, alias="vehicleNo")
    mobile: Optional[Union[str, int]] = None

    class Config:
        populate_by_name = True


class ParkingRecordOut(BaseModel):
    id: str
    vehicleNo: str
    mobile: str
    vehicleType: str
    amount: float
    note: str
    paidAt: str
    expiresAt: str
    reminderSent: bool
    overstayNotified: bool


class CheckInResponse(BaseModel):
    ok: bool
    record: ParkingRecordOut


class ParkingListOut(BaseModel):
    count: int
    data: list[ParkingRecordOut]
