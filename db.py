# db.py
# Role: Database bootstrap for the ledger API.
#       Defines the SQLAlchemy engine, session factory, and declarative Base.
#       The connection URL comes from app.config (DATABASE_URL).

"""
Database setup for the ledger API.

- Default database: SQLite file at ./database/ledger.db
- In-memory SQLite URLs share one connection (StaticPool) so every session
  sees the same data.
- Foreign keys are enforced on SQLite so deleting a user cascades to its
  transactions.
"""

import os

from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from app.config import get_settings

DATABASE_URL = get_settings().database_url

_url = make_url(DATABASE_URL)
_is_sqlite = _url.get_backend_name() == "sqlite"

engine_kwargs = {}
if _is_sqlite:
    # FastAPI serves sync routes from a threadpool
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    if _url.database in (None, "", ":memory:"):
        engine_kwargs["poolclass"] = StaticPool
    else:
        # Make sure the folder for the database file exists
        db_dir = os.path.dirname(os.path.abspath(_url.database))
        os.makedirs(db_dir, exist_ok=True)

engine = create_engine(DATABASE_URL, **engine_kwargs)


if _is_sqlite:
    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Standard session factory used via dependency injection (see app/deps.py:get_db)
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

# Declarative base class for ORM models
Base = declarative_base()
