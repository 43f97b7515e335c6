from sqlalchemy import Column, Float, Integer, Text, UniqueConstraint
from transit_sync.core.db import Base

class Stop(Base):
    __tablename__ = "stops"
    __table_args__ = (UniqueConstraint("stop_code", "city", name="uq_stops_stop_code_city"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    stop_code = Column(Integer, nullable=False, index=True)
    stop_name = Column(Text, nullable=False)

    x_coord = Column(Float, nullable=True)   # longitude
    y_coord = Column(Float, nullable=True)   # latitude
    province = Column(Text, nullable=True)

    city = Column(Text, nullable=False, index=True)
