"""Store factory functions for creating row store instances."""

import os
from pathlib import Path
from typing import Optional

from invoicegrid.database.sqlalchemy_store import SQLAlchemyRowStore

DB_PATH_ENV = "INVOICEGRID_DB_PATH"


def create_sqlite_store(database_path: Optional[str] = None) -> SQLAlchemyRowStore:
    """Create a SQLite row store instance.

    Args:
        database_path: Path to SQLite database file. If None, checks INVOICEGRID_DB_PATH
            environment variable, then defaults to ~/.invoicegrid/invoicegrid.db

    Returns:
        SQLAlchemyRowStore instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get(DB_PATH_ENV)

    if database_path is None:
        db_dir = Path.home() / ".invoicegrid"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "invoicegrid.db")

    return SQLAlchemyRowStore(f"sqlite:///{database_path}")
