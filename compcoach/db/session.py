from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool


def build_engine(database_url: str) -> Engine:
    if database_url.startswith("sqlite"):
        # In-memory databases live on a single connection, so it has to be shared
        in_memory = database_url in ("sqlite://", "sqlite:///:memory:")
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if in_memory else None,
        )

    # Configure connection pooling to prevent connection exhaustion under concurrent requests
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=10,  # Number of connections to maintain persistently
        max_overflow=20,  # Maximum number of connections to create beyond pool_size
        pool_timeout=30,  # Seconds to wait before giving up on getting a connection
        pool_pre_ping=True,  # Verify connections before using them (handles stale connections)
        pool_recycle=3600,  # Recycle connections after 1 hour to prevent stale connections
        echo=False,
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    # Objects handed out by the stores outlive their session, so keep attributes loaded
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)
