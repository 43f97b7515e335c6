from sqlalchemy import JSON, Column, Integer, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from transit_sync.core.db import Base

class RoutePath(Base):
    __tablename__ = "route_paths"
    __table_args__ = (UniqueConstraint("route_code", "city", name="uq_route_paths_route_code_city"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    route_code = Column(Text, nullable=False, index=True)
    city = Column(Text, nullable=False, index=True)

    # ordered [{"lat": .., "lng": ..}, ...]
    route_path = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=False, default=list)
