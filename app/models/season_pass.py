# app/models/season_pass.py
"""
Season passes table. Standing check-in shortcuts, at most one per vehicle.
"""

from sqlalchemy import Column, Integer, String
from app.database import Base


class SeasonPassRow(Base):
    __tablename__ = "season_passes"

    id = Column(String(50), primary_key=True)            # "season-<token>"
    position = Column(Integer, nullable=False)
    vehicle_no = Column(String(50), nullable=False, index=True)
    mobile = Column(String(20), nullable=False)
    token = Column(String(20), nullable=False, unique=True, index=True)

    def __repr__(self):
        return f"<SeasonPassRow {self.token} vehicle={self.vehicle_no}>"
