from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from lunarlink.core.config import settings

engine = create_engine(settings.database_url, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Request-scoped database session
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
