# /app/db/database.py

import os
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from .base_class import Base

load_dotenv()

# The single-file SQLite database is the default for a classroom install.
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./story_grader.db")

# The 'check_same_thread' argument is only needed for SQLite. Store writes run
# in worker threads (asyncio.to_thread), so it must be disabled there.
engine_args = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, **engine_args)

# Each instance of this class is a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables():
    """Creates every table registered on Base. Safe to call on every startup."""
    # Importing the registry makes sure every model is attached to Base.
    from . import base  # noqa: F401
    Base.metadata.create_all(bind=engine)
