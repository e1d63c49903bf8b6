"""Database engine and session management."""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from .schema import Base


class Database:
    """SQLite engine and session factory for one catalog file."""

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            connect_args={"check_same_thread": False},  # watcher timers import from other threads
        )

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all_tables(self):
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        return self.SessionLocal()

    def close(self):
        self.engine.dispose()


_database: Database | None = None


def get_database(db_path: Path | None = None) -> Database:
    """
    Get the process-wide database instance.

    Args:
        db_path: Path to database file (required on first call; a different
            path replaces the cached instance)

    Returns:
        Database instance with its tables created
    """
    global _database
    if db_path is not None and (_database is None or _database.db_path != Path(db_path)):
        if _database is not None:
            _database.close()
        _database = Database(db_path)
        _database.create_all_tables()
    if _database is None:
        raise ValueError("db_path must be provided on first call to get_database()")
    return _database


def get_session() -> Session:
    """Get a session from the process-wide database."""
    return get_database().get_session()
