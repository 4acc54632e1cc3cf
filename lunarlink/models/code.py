from sqlalchemy import Column, Integer, String, TIMESTAMP, Index
from sqlalchemy.sql import func
from lunarlink.db.session import Base


class Code(Base):
    __tablename__ = "codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(128), nullable=False)
    speed = Column(String(20), nullable=False)
    batch = Column(String(200), nullable=False)
    status = Column(String(10), nullable=False, default="unused")  # "unused" / "used"
    added_on = Column(TIMESTAMP, server_default=func.now())
    used_on = Column(TIMESTAMP, nullable=True)

    __table_args__ = (
        Index("ix_codes_speed_status", "speed", "status"),
    )
