"""Database connection for AutoTime API."""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config import settings

# SQLite engine with connection pooling disabled for thread safety
# Handle different DB_PATH formats:
# - ":memory:" → sqlite:///:memory: (in-memory test DB)
# - Absolute path (/app/db/autotime.db) → sqlite:////app/db/autotime.db
# - Relative path (db/autotime.db) → sqlite:///./db/autotime.db
if settings.DB_PATH == ":memory:":
    db_url = "sqlite:///:memory:"
elif settings.DB_PATH.startswith('/'):
    db_url = f"sqlite:///{settings.DB_PATH}"
else:
    db_url = f"sqlite:///./{settings.DB_PATH}"

engine = create_engine(
    db_url,
    connect_args={"check_same_thread": False}
)

# Session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
