# pairup/database.py
from sqlmodel import SQLModel, create_engine, Session

from pairup.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Supabase Postgres connection (via pooler)
#
# - sslmode=require    : enforce SSL when running in the cloud
# - pool_size=1        : keep only 1 connection to the Supabase pooler
# - max_overflow=0     : do not open extra connections beyond the pool
# - pool_pre_ping=True : validate connections before using them
# - statement_timeout  : cap every statement at SUBMISSION_TIMEOUT_SECONDS
#
# Supabase Session mode limits the number of clients, so each process
# keeps a single pooled connection.
# ---------------------------------------------------------

db_url = settings.DATABASE_URL

engine_kwargs: dict = {
    "echo": False,  # set to True to debug SQL queries
    "pool_pre_ping": True,
}

if db_url.startswith("postgres"):
    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    timeout_ms = int(settings.SUBMISSION_TIMEOUT_SECONDS * 1000)
    engine_kwargs.update(
        pool_size=1,
        max_overflow=0,
        connect_args={"options": f"-c statement_timeout={timeout_ms}"},
    )

engine = create_engine(db_url, **engine_kwargs)


def create_db_and_tables() -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    SQLModel.metadata.create_all(engine)


def get_session():
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(engine) as session:
        yield session
