from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from leavedesk.core.config import settings

DATABASE_URL = settings.database_url

if DATABASE_URL.startswith("postgresql"):
    engine = create_engine(DATABASE_URL)
else:
    # SQLite configuration for local development/testing
    engine = create_engine(
        DATABASE_URL, connect_args={"check_same_thread": False}
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    """
    Session Provider: Provides a database session per request.
    Commits happen inside the store collaborators, one per lifecycle operation.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db():
    """
    Registers the leave models and creates missing tables.
    Called from the application lifespan.
    """
    from leavedesk.models import member, leave_type, leave_request, notification  # noqa: F401
    Base.metadata.create_all(bind=engine)
