"""Tenant, database, table and row administration."""

import re
from typing import Any, Optional

from loguru import logger

from invoicegrid.database.base import RowStore
from invoicegrid.domain.entities import CellWrite, Column, Row, Table, Tenant, TenantDatabase
from invoicegrid.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    database_not_found,
    table_not_found,
    tenant_not_found,
)
from invoicegrid.domain.semantic_types import SemanticType
from invoicegrid.utils.amount_parser import to_decimal, to_json_number

COLUMN_TYPES = ("string", "number", "date", "boolean", "reference")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def is_currency_code(value: Optional[str]) -> bool:
    """Return True for a three-letter upper-case currency code."""
    return bool(value) and bool(CURRENCY_PATTERN.match(value))


def coerce_cell_value(column: Column, value: Any) -> Any:
    """Convert a raw value (usually CLI text) to the JSON form stored for the column type.

    Raises:
        ValidationError: If the value does not fit the column type
    """
    if value is None or not isinstance(value, str):
        return value
    if column.type == "number":
        number = to_decimal(value)
        if number is None:
            raise ValidationError(f"Column '{column.name}' expects a number, got '{value}'", field=column.name)
        return to_json_number(number)
    if column.type == "boolean":
        return value.strip().lower() in ("1", "true", "yes", "y")
    if column.type == "reference":
        try:
            return [int(value)]
        except ValueError:
            raise ValidationError(f"Column '{column.name}' expects a row ID, got '{value}'", field=column.name)
    return value


def resolve_database(store: RowStore, tenant_id: int, database_id: Optional[int] = None) -> TenantDatabase:
    """Return the given database of a tenant, or its default database.

    Raises:
        NotFoundError: If the tenant or database does not exist
    """
    if store.get_tenant(tenant_id) is None:
        raise NotFoundError(tenant_not_found(tenant_id))
    if database_id is None:
        database = store.get_default_database(tenant_id)
    else:
        database = store.get_database(tenant_id, database_id)
    if database is None:
        raise NotFoundError(database_not_found(tenant_id, database_id))
    return database


class CatalogService:
    """Service for creating tenants, databases, tables, columns and rows."""

    def __init__(self, store: RowStore):
        """Initialize catalog service.

        Args:
            store: Row store instance
        """
        self.store = store

    def create_tenant(
        self,
        name: str,
        default_currency: str = "USD",
        invoice_series_prefix: str = "INV",
        invoice_include_year: bool = True,
        invoice_start_number: int = 1,
        database_name: str = "Main",
    ) -> Tenant:
        """Create a tenant together with its default database.

        Raises:
            ValidationError: If a setting is invalid
            ConflictError: If a tenant with the same name exists
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Tenant name cannot be empty", field="name")
        default_currency = (default_currency or "").strip().upper()
        if not is_currency_code(default_currency):
            raise ValidationError("Default currency must be a 3-letter code", field="default_currency")
        if not (invoice_series_prefix or "").strip():
            raise ValidationError("Invoice series prefix cannot be empty", field="invoice_series_prefix")
        if invoice_start_number < 1:
            raise ValidationError("Invoice start number must be at least 1", field="invoice_start_number")

        def work(store: RowStore) -> Tenant:
            if any(t.name == name for t in store.list_tenants()):
                raise ConflictError(f"Tenant '{name}' already exists", field="name")
            tenant = store.create_tenant(
                name=name,
                default_currency=default_currency,
                invoice_series_prefix=invoice_series_prefix.strip(),
                invoice_include_year=invoice_include_year,
                invoice_start_number=invoice_start_number,
            )
            store.create_database(tenant.id, database_name, is_default=True)
            return tenant

        tenant = self.store.run_transaction(work)
        logger.info("Created tenant {} '{}'", tenant.id, tenant.name)
        return tenant

    def get_tenant(self, tenant_id: int) -> Tenant:
        """Get a tenant.

        Raises:
            NotFoundError: If the tenant does not exist
        """
        tenant = self.store.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError(tenant_not_found(tenant_id))
        return tenant

    def create_database(self, tenant_id: int, name: str, is_default: bool = False) -> TenantDatabase:
        """Create an additional database for a tenant."""
        name = (name or "").strip()
        if not name:
            raise ValidationError("Database name cannot be empty", field="name")

        def work(store: RowStore) -> TenantDatabase:
            self.get_tenant(tenant_id)
            if any(d.name == name for d in store.list_databases(tenant_id)):
                raise ConflictError(f"Database '{name}' already exists", field="name")
            return store.create_database(tenant_id, name, is_default=is_default)

        return self.store.run_transaction(work)

    def get_table(self, tenant_id: int, table_name: str, database_id: Optional[int] = None) -> Table:
        """Get a table of a tenant database by name.

        Raises:
            NotFoundError: If the tenant, database or table does not exist
        """
        database = resolve_database(self.store, tenant_id, database_id)
        table = self.store.find_table(database.id, table_name)
        if table is None:
            raise NotFoundError(table_not_found(table_name))
        return table

    def create_table(
        self,
        tenant_id: int,
        name: str,
        description: Optional[str] = None,
        database_id: Optional[int] = None,
    ) -> Table:
        """Create a user table.

        Raises:
            ConflictError: If a table with the same name exists in the database
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Table name cannot be empty", field="name")

        def work(store: RowStore) -> Table:
            database = resolve_database(store, tenant_id, database_id)
            if store.find_table(database.id, name) is not None:
                raise ConflictError(f"Table '{name}' already exists", field="name")
            return store.create_table(database.id, name, description=description)

        return self.store.run_transaction(work)

    def add_column(
        self,
        tenant_id: int,
        table_name: str,
        name: str,
        type: str = "string",
        semantic_type: Optional[str] = None,
        required: bool = False,
        database_id: Optional[int] = None,
    ) -> Column:
        """Add a column to a table.

        Raises:
            ValidationError: If the type or semantic type is unknown
            ConflictError: If the table already has a column with this name
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Column name cannot be empty", field="name")
        if type not in COLUMN_TYPES:
            raise ValidationError(
                f"Unknown column type '{type}'. Must be one of: {', '.join(COLUMN_TYPES)}", field="type"
            )
        tag = None
        if semantic_type:
            parsed = SemanticType.parse(semantic_type)
            if parsed is None:
                raise ValidationError(f"Unknown semantic type '{semantic_type}'", field="semantic_type")
            tag = parsed.value

        def work(store: RowStore) -> Column:
            table = self.get_table(tenant_id, table_name, database_id)
            if table.column_named(name) is not None:
                raise ConflictError(f"Column '{name}' already exists in table '{table_name}'", field="name")
            return store.create_column(table.id, name, type=type, semantic_type=tag, required=required)

        return self.store.run_transaction(work)

    def add_row(
        self,
        tenant_id: int,
        table_name: str,
        values: dict[str, Any],
        database_id: Optional[int] = None,
    ) -> Row:
        """Add a row to a table, with values keyed by column name.

        Raises:
            ValidationError: If a value names an unknown column or a required column is missing
        """

        def work(store: RowStore) -> Row:
            table = self.get_table(tenant_id, table_name, database_id)
            unknown = [key for key in values if table.column_named(key) is None]
            if unknown:
                raise ValidationError(
                    f"Unknown column{'s' if len(unknown) != 1 else ''} in table '{table_name}': "
                    f"{', '.join(unknown)}"
                )
            missing = [c.name for c in table.columns if c.required and values.get(c.name) in (None, "")]
            if missing:
                raise ValidationError(f"Missing required columns: {', '.join(missing)}")

            row = store.create_row(table.id)
            writes = [
                (column.id, coerce_cell_value(column, value))
                for column, value in ((table.column_named(key), v) for key, v in values.items())
                if value is not None
            ]
            store.create_cells(CellWrite(row_id=row.id, column_id=col_id, value=v) for col_id, v in writes)
            return store.find_row(table.id, row.id)

        return self.store.run_transaction(work)
