"""Row store layer for invoicegrid."""

from invoicegrid.database.base import RowStore
from invoicegrid.database.factories import create_sqlite_store

__all__ = ["RowStore", "create_sqlite_store"]
