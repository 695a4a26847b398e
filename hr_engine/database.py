from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from hr_engine.core.config import settings

# Support both PostgreSQL and SQLite via centralized settings
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
    Transaction management is handled explicitly in the Service Layer.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db(bind=None):
    """
    Registers all domain models and creates the schema, including the
    natural-key unique constraints the services rely on.
    """
    # Import all models to ensure they are registered with Base.metadata before create_all
    from hr_engine.models import (  # noqa: F401
        employee, leave_type, leave_balance, leave_request,
        attendance, payroll
    )
    Base.metadata.create_all(bind=bind or engine)
