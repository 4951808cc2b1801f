# vibecheck/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

# Base class for models
Base = declarative_base()

def build_engine(database_url: str) -> Engine:
    """Create a database engine (SQLite connections may be shared across threads)"""
    return create_engine(
        database_url,
        connect_args={"check_same_thread": False} if "sqlite" in database_url else {},
        echo=False  # Disable SQL query logging (too verbose)
    )

def build_session_factory(engine: Engine) -> sessionmaker:
    """
    Create the ORM session factory

    Objects stay readable after commit because the store hands them
    back to callers once its own session is closed.
    """
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)

# Function to initialize database (creates tables)
def init_db(engine: Engine):
    """
    Initialize database by creating all tables
    Called from the store on startup
    """
    from .models import session, participant  # Import all models
    Base.metadata.create_all(bind=engine)
