from sqlalchemy import Column, Integer, Text, UniqueConstraint
from transit_sync.core.db import Base

class LineStop(Base):
    __tablename__ = "line_stops"
    __table_args__ = (
        UniqueConstraint("route_code", "stop_code", "city", name="uq_line_stops_route_stop_city"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)

    line_code = Column(Text, nullable=False, index=True)
    stop_code = Column(Integer, nullable=False, index=True)
    stop_order = Column(Integer, nullable=False)
    route_code = Column(Text, nullable=False, index=True)

    city = Column(Text, nullable=False, index=True)
