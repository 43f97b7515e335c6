from sqlalchemy import JSON, Column, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from transit_sync.core.db import Base

TimeList = JSON().with_variant(JSONB(), "postgresql")

class Timetable(Base):
    __tablename__ = "timetables"
    __table_args__ = (UniqueConstraint("route_code", "city", name="uq_timetables_route_code_city"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    route_code = Column(Text, nullable=False, index=True)
    city = Column(Text, nullable=False, index=True)

    # each column holds sorted "HH:MM:SS" strings
    monday = Column(TimeList, nullable=False, default=list)
    tuesday = Column(TimeList, nullable=False, default=list)
    wednesday = Column(TimeList, nullable=False, default=list)
    thursday = Column(TimeList, nullable=False, default=list)
    friday = Column(TimeList, nullable=False, default=list)
    saturday = Column(TimeList, nullable=False, default=list)
    sunday = Column(TimeList, nullable=False, default=list)
