# FILE: chainpad/db.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from chainpad.settings import get_settings

# Database path: ./data/chainpad.db relative to project root
# Override with CHAINPAD_DATABASE_URL env var if needed
DATABASE_URL = get_settings().database_url

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
    echo=False,  # Set True to log SQL statements for debugging
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """FastAPI dependency that yields a DB session and closes it after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    """Create all tables. Call once at startup."""
    # Import models so Base.metadata knows about them
    from chainpad.auth import models as auth_models  # noqa: F401
    from chainpad.contracts import models as contract_models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
