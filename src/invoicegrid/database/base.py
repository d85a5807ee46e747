"""Abstract row store interface."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, TypeVar

# Import entities directly to avoid circular import through domain/__init__.py
from invoicegrid.domain.entities import (
    Cell,
    CellWrite,
    Column,
    InvoiceSeries,
    Row,
    Table,
    Tenant,
    TenantDatabase,
)

T = TypeVar("T")


class RowStore(ABC):
    """Abstract multi-tenant table/row/column/cell store for invoicegrid."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the store."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the store."""
        pass

    @abstractmethod
    def run_transaction(self, fn: Callable[["RowStore"], T]) -> T:
        """Run ``fn(store)`` inside one transaction.

        Commits when ``fn`` returns and rolls back when it raises. Calls made
        while a transaction is already open join it.
        """
        pass

    # Tenant operations
    @abstractmethod
    def create_tenant(
        self,
        name: str,
        default_currency: str = "USD",
        invoice_series_prefix: str = "INV",
        invoice_include_year: bool = True,
        invoice_start_number: int = 1,
    ) -> Tenant:
        """Create a tenant."""
        pass

    @abstractmethod
    def get_tenant(self, tenant_id: int) -> Optional[Tenant]:
        """Get tenant by ID."""
        pass

    @abstractmethod
    def list_tenants(self) -> list[Tenant]:
        """List all tenants."""
        pass

    # Database operations
    @abstractmethod
    def create_database(self, tenant_id: int, name: str, is_default: bool = False) -> TenantDatabase:
        """Create a database owned by a tenant."""
        pass

    @abstractmethod
    def get_database(self, tenant_id: int, database_id: int) -> Optional[TenantDatabase]:
        """Get a tenant's database by ID."""
        pass

    @abstractmethod
    def get_default_database(self, tenant_id: int) -> Optional[TenantDatabase]:
        """Get the tenant's default database."""
        pass

    @abstractmethod
    def list_databases(self, tenant_id: int) -> list[TenantDatabase]:
        """List databases owned by a tenant."""
        pass

    # Table and column operations
    @abstractmethod
    def find_table(self, database_id: int, name: str) -> Optional[Table]:
        """Find a table by name, with its columns."""
        pass

    @abstractmethod
    def get_table(self, table_id: int) -> Optional[Table]:
        """Get a table by ID, with its columns."""
        pass

    @abstractmethod
    def find_tables(self, database_id: int, protected_type: Optional[str] = None) -> list[Table]:
        """List tables of a database, optionally only those of one protected type."""
        pass

    @abstractmethod
    def create_table(
        self,
        database_id: int,
        name: str,
        description: Optional[str] = None,
        is_protected: bool = False,
        protected_type: Optional[str] = None,
    ) -> Table:
        """Create a table."""
        pass

    @abstractmethod
    def create_column(
        self,
        table_id: int,
        name: str,
        type: str = "string",
        semantic_type: Optional[str] = None,
        required: bool = False,
        order: Optional[int] = None,
        is_locked: bool = False,
        reference_table_id: Optional[int] = None,
    ) -> Column:
        """Create a column. Without ``order`` it is appended after the last one."""
        pass

    @abstractmethod
    def update_column(self, column_id: int, **fields: Any) -> Column:
        """Update column attributes (type, semantic_type, required, is_locked, reference_table_id)."""
        pass

    @abstractmethod
    def list_columns(self, table_id: int) -> list[Column]:
        """List the columns of a table in display order."""
        pass

    # Row and cell operations
    @abstractmethod
    def create_row(self, table_id: int) -> Row:
        """Create an empty row."""
        pass

    @abstractmethod
    def create_cells(self, cells: Iterable[CellWrite]) -> int:
        """Write cells, replacing any value already stored for the same row/column.

        Returns the number of cells written.
        """
        pass

    @abstractmethod
    def update_cell(self, row_id: int, column_id: int, value: Any) -> Cell:
        """Set one cell value."""
        pass

    @abstractmethod
    def find_row(self, table_id: int, row_id: int) -> Optional[Row]:
        """Find a row of a table, with its cells."""
        pass

    @abstractmethod
    def find_rows(self, table_id: int, filters: Optional[dict[int, Any]] = None) -> list[Row]:
        """List rows of a table ordered by ID.

        Args:
            table_id: Table to read
            filters: Optional mapping of column ID to required value. A
                reference cell holding ``[value]`` matches ``value``.
        """
        pass

    @abstractmethod
    def delete_rows(self, table_id: int, row_ids: Iterable[int]) -> int:
        """Delete rows and their cells. Returns the number of rows deleted."""
        pass

    # Invoice series operations
    @abstractmethod
    def find_series(
        self, tenant_id: int, database_id: int, series: str, for_update: bool = False
    ) -> Optional[InvoiceSeries]:
        """Find a numbering series, re-reading it from storage."""
        pass

    @abstractmethod
    def list_series(self, tenant_id: int, database_id: int) -> list[InvoiceSeries]:
        """List numbering series ordered by name."""
        pass

    @abstractmethod
    def create_series(
        self,
        tenant_id: int,
        database_id: int,
        series: str,
        prefix: str = "",
        suffix: str = "",
        separator: str = "-",
        include_year: bool = False,
        include_month: bool = False,
        reset_yearly: bool = False,
        current_number: int = 0,
    ) -> InvoiceSeries:
        """Create a numbering series."""
        pass

    @abstractmethod
    def update_series(self, series_id: int, **fields: Any) -> InvoiceSeries:
        """Update formatting fields or the counter of a series."""
        pass

    @abstractmethod
    def delete_series(self, series_id: int) -> None:
        """Delete a numbering series."""
        pass

    @abstractmethod
    def compare_and_set_series_counter(
        self, series_id: int, expected: int, new: int, year: Optional[int]
    ) -> bool:
        """Set ``currentNumber`` to ``new`` only if it still equals ``expected``.

        Returns:
            True when the row was updated, False when another writer got there first
        """
        pass
