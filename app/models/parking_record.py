# app/models/parking_record.py
"""
Parking records table.
One row per check-in. Rewritten as a whole collection by RecordStore.write_all,
`position` keeps the insertion order stable across rewrites.
"""

from sqlalchemy import Column, Integer, String, DateTime, Float, Text, Boolean
from app.database import Base


class ParkingRecordRow(Base):
    __tablename__ = "parking_records"

    id = Column(String(36), primary_key=True)           # uuid4
    position = Column(Integer, nullable=False, index=True)
    vehicle_no = Column(String(50), nullable=False, index=True)
    mobile = Column(String(20), nullable=False, index=True)
    vehicle_type = Column(String(50), nullable=False)
    amount = Column(Float, nullable=False, default=0.0)
    note = Column(Text, default="")
    paid_at = Column(DateTime, nullable=False, index=True)
    expires_at = Column(DateTime, nullable=False, index=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    overstay_notified = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<ParkingRecordRow {self.id} vehicle={self.vehicle_no} expires={self.expires_at}>"
