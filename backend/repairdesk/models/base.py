from __future__ import annotations
from sqlalchemy.orm import declarative_base

# Shared metadata for every table; alembic's env.py targets Base.metadata
Base = declarative_base()
