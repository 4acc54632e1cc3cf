from sqlalchemy import Column, Integer, TIMESTAMP
from sqlalchemy.sql import func
from lunarlink.db.session import Base

STATS_ROW_ID = 1

COUNTER_COLUMNS = (
    "total_codes_uploaded",
    "codes_used",
    "yes_clicks",
    "no_clicks",
    "batches_uploaded",
)


class Stats(Base):
    """Singleton counters row, always id = 1."""
    __tablename__ = "stats"

    id = Column(Integer, primary_key=True, default=STATS_ROW_ID)
    total_codes_uploaded = Column(Integer, nullable=False, default=0)
    codes_used = Column(Integer, nullable=False, default=0)
    yes_clicks = Column(Integer, nullable=False, default=0)
    no_clicks = Column(Integer, nullable=False, default=0)
    batches_uploaded = Column(Integer, nullable=False, default=0)
    last_updated = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())
