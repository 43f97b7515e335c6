from sqlalchemy import Column, Integer, Text, UniqueConstraint
from transit_sync.core.db import Base

class Route(Base):
    __tablename__ = "routes"
    __table_args__ = (UniqueConstraint("route_code", "city", name="uq_routes_route_code_city"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    route_code = Column(Text, nullable=False, index=True)   # e.g. 500T_G_D0
    route_short_name = Column(Text, nullable=True)          # owning line code
    route_long_name = Column(Text, nullable=True)
    route_type = Column(Integer, nullable=True)             # GTFS route_type, 3 = bus
    route_desc = Column(Text, nullable=True)
    agency_id = Column(Integer, nullable=True)

    city = Column(Text, nullable=False, index=True)
