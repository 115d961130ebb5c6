# Parking check-in service — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.parking_record import ParkingRecordRow   # noqa
from app.models.season_pass import SeasonPassRow         # noqa
from app.models.otp_entry import OtpEntryRow             # noqa
