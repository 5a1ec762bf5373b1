from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from projecthub.core.config import settings

DATABASE_URL = settings.DATABASE_URL

# SQLite connections are shared across the threadpool
connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    connect_args = {"check_same_thread": False}

engine = create_engine(DATABASE_URL, connect_args=connect_args, echo=False)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """DB session dependency"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
