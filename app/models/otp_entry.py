# app/models/otp_entry.py
"""
Snapshot table for in-flight one-time codes.
The live map is held in memory by OtpStore; this table is only its snapshot.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base


class OtpEntryRow(Base):
    __tablename__ = "otp_entries"

    mobile = Column(String(20), primary_key=True)
    otp = Column(String(6), nullable=False)
    created_at = Column(DateTime, nullable=False)
    attempts = Column(Integer, nullable=False, default=0)

    def __repr__(self):
        return f"<OtpEntryRow attempts={self.attempts}>"
