# app/exceptions.py
"""
Error taxonomy shared by services and routers.
Each surfaced error carries the HTTP status and the message the API returns.
DispatchError is never raised to callers; it travels inside DispatchResult.
"""


class ParkingError(Exception):
    status_code = 400
    message = "Bad request"

    def __init__(self, message=None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(ParkingError):
    message = "Missing fields"


class NotRequested(ParkingError):
    message = "OTP not requested"


class InvalidCode(ParkingError):
    message = "Invalid OTP"


class TooManyAttempts(ParkingError):
    status_code = 429
    message = "Too many attempts"


class StoreIOError(ParkingError):
    status_code = 500
    message = "Server error"


class DispatchError(ParkingError):
    status_code = 500
    message = "Notification failed"
