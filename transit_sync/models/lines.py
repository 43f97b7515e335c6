from sqlalchemy import Column, Integer, Text, UniqueConstraint
from transit_sync.core.db import Base

class Line(Base):
    __tablename__ = "lines"
    __table_args__ = (UniqueConstraint("code", "city", name="uq_lines_code_city"),)

    id = Column(Integer, primary_key=True, autoincrement=True)

    code = Column(Text, nullable=False, index=True)
    title = Column(Text, nullable=False)
    city = Column(Text, nullable=False, index=True)
