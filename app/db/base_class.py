# /app/db/base_class.py

from sqlalchemy.orm import declarative_base

# Every SQLAlchemy model in the application inherits from this Base.
Base = declarative_base()
