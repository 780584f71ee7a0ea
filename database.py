from sqlalchemy import create_engine, text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi import Request

from config import Settings

Base = declarative_base()


# --- ENGINE & SESSION ---
def create_db_engine(settings: Settings):
    """Build the engine for the configured DATABASE_URL."""
    url = settings.database_url

    if settings.is_postgres:
        # Production: PostgreSQL with connection pooling
        return create_engine(
            url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=30,
            pool_recycle=settings.db_pool_recycle,
            pool_pre_ping=True,
        )

    if url in ("sqlite://", "sqlite:///:memory:"):
        # In-memory SQLite must share one connection across threads
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # Development: SQLite file
    return create_engine(url, connect_args={"check_same_thread": False})


def make_session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine) -> None:
    """Create all tables that don't exist yet."""
    import models_orm  # noqa: F401  (registers the mappers on Base)

    Base.metadata.create_all(bind=engine)


def ping(engine) -> bool:
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


# --- DEPENDENCY ---
def get_db(request: Request):
    """
    Dependency for FastAPI Routes.
    Yields a database session bound to this app's engine and closes it
    after the request.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
