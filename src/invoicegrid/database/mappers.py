"""Mapper functions to convert SQLAlchemy models into domain entities.

Mapping happens while the session is still open so that domain objects
never carry lazy-loading state out of a transaction.
"""

from invoicegrid.domain import entities as domain
from invoicegrid.database.models import (
    Cell as ORMCell,
    Column as ORMColumn,
    Database as ORMDatabase,
    InvoiceSeries as ORMInvoiceSeries,
    Row as ORMRow,
    Table as ORMTable,
    Tenant as ORMTenant,
)


def tenant_to_domain(orm_tenant: ORMTenant) -> domain.Tenant:
    """Convert SQLAlchemy Tenant model to domain Tenant entity."""
    return domain.Tenant(
        id=orm_tenant.id,
        name=orm_tenant.name,
        default_currency=orm_tenant.default_currency,
        invoice_series_prefix=orm_tenant.invoice_series_prefix,
        invoice_include_year=orm_tenant.invoice_include_year,
        invoice_start_number=orm_tenant.invoice_start_number,
        created_at=orm_tenant.created_at,
    )


def database_to_domain(orm_database: ORMDatabase) -> domain.TenantDatabase:
    """Convert SQLAlchemy Database model to domain TenantDatabase entity."""
    return domain.TenantDatabase(
        id=orm_database.id,
        tenant_id=orm_database.tenant_id,
        name=orm_database.name,
        is_default=orm_database.is_default,
        created_at=orm_database.created_at,
    )


def column_to_domain(orm_column: ORMColumn) -> domain.Column:
    """Convert SQLAlchemy Column model to domain Column entity."""
    return domain.Column(
        id=orm_column.id,
        table_id=orm_column.table_id,
        name=orm_column.name,
        type=orm_column.type,
        semantic_type=orm_column.semantic_type,
        required=orm_column.required,
        order=orm_column.order,
        is_locked=orm_column.is_locked,
        reference_table_id=orm_column.reference_table_id,
    )


def table_to_domain(orm_table: ORMTable) -> domain.Table:
    """Convert SQLAlchemy Table model to domain Table entity, columns included."""
    columns = sorted(orm_table.columns, key=lambda c: (c.order, c.id))
    return domain.Table(
        id=orm_table.id,
        database_id=orm_table.database_id,
        name=orm_table.name,
        description=orm_table.description,
        is_protected=orm_table.is_protected,
        protected_type=orm_table.protected_type,
        created_at=orm_table.created_at,
        columns=tuple(column_to_domain(c) for c in columns),
    )


def cell_to_domain(orm_cell: ORMCell) -> domain.Cell:
    """Convert SQLAlchemy Cell model to domain Cell entity."""
    return domain.Cell(
        id=orm_cell.id,
        row_id=orm_cell.row_id,
        column_id=orm_cell.column_id,
        value=orm_cell.value,
    )


def row_to_domain(orm_row: ORMRow) -> domain.Row:
    """Convert SQLAlchemy Row model to domain Row entity, cells included."""
    return domain.Row(
        id=orm_row.id,
        table_id=orm_row.table_id,
        created_at=orm_row.created_at,
        cells=tuple(cell_to_domain(c) for c in sorted(orm_row.cells, key=lambda c: c.column_id)),
    )


def series_to_domain(orm_series: ORMInvoiceSeries) -> domain.InvoiceSeries:
    """Convert SQLAlchemy InvoiceSeries model to domain InvoiceSeries entity."""
    return domain.InvoiceSeries(
        id=orm_series.id,
        tenant_id=orm_series.tenant_id,
        database_id=orm_series.database_id,
        series=orm_series.series,
        prefix=orm_series.prefix,
        suffix=orm_series.suffix,
        separator=orm_series.separator,
        include_year=orm_series.include_year,
        include_month=orm_series.include_month,
        reset_yearly=orm_series.reset_yearly,
        current_number=orm_series.current_number,
        last_year=orm_series.last_year,
        created_at=orm_series.created_at,
        updated_at=orm_series.updated_at,
    )
