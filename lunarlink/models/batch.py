from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func
from lunarlink.db.session import Base


class Batch(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    batch_name = Column(String(200), nullable=False)
    speed = Column(String(20), nullable=False)
    total_codes = Column(Integer, nullable=False, default=0)
    uploaded_on = Column(TIMESTAMP, server_default=func.now())
