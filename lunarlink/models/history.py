from sqlalchemy import Column, Integer, String, TIMESTAMP
from sqlalchemy.sql import func
from lunarlink.db.session import Base


class History(Base):
    __tablename__ = "history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(128), nullable=False)
    speed = Column(String(20), nullable=False)
    batch = Column(String(200), nullable=False)
    used_on = Column(TIMESTAMP, server_default=func.now())
