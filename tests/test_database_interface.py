"""Tests for the SQLAlchemy row store."""

import pytest
from sqlalchemy import inspect

from invoicegrid.database.base import RowStore
from invoicegrid.domain.entities import CellWrite
from invoicegrid.domain.errors import ConflictError, NotFoundError, ValidationError


def test_store_implements_interface(temp_store):
    """The SQLAlchemy store is a RowStore."""
    assert isinstance(temp_store, RowStore)


def test_invoice_series_column_names(temp_store):
    """Series columns keep their persisted camelCase names."""
    engine = temp_store.session_factory.kw["bind"]
    names = {col["name"] for col in inspect(engine).get_columns("invoice_series")}

    assert {
        "tenantId",
        "databaseId",
        "series",
        "prefix",
        "suffix",
        "separator",
        "includeYear",
        "includeMonth",
        "resetYearly",
        "currentNumber",
        "lastYear",
    } <= names


def test_tenant_defaults(temp_store):
    """Tenants default to USD and INV numbering with the year."""
    tenant = temp_store.create_tenant("Acme")

    assert tenant.default_currency == "USD"
    assert tenant.invoice_series_prefix == "INV"
    assert tenant.invoice_include_year is True
    assert tenant.invoice_start_number == 1
    assert temp_store.get_tenant(tenant.id) == tenant
    assert temp_store.get_tenant(999) is None


def test_default_database_switches(temp_store):
    """Only one database per tenant is the default."""
    tenant = temp_store.create_tenant("Acme")
    first = temp_store.create_database(tenant.id, "Main", is_default=True)
    second = temp_store.create_database(tenant.id, "Archive", is_default=True)

    assert temp_store.get_default_database(tenant.id).id == second.id
    assert not temp_store.get_database(tenant.id, first.id).is_default
    assert [d.name for d in temp_store.list_databases(tenant.id)] == ["Main", "Archive"]


def test_database_requires_tenant(temp_store):
    """Databases cannot be created for unknown tenants."""
    with pytest.raises(NotFoundError):
        temp_store.create_database(999, "Main")


def test_duplicate_table_name_is_a_conflict(temp_store):
    """Unique constraint violations surface as ConflictError."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    temp_store.create_table(database.id, "products")

    with pytest.raises(ConflictError):
        temp_store.create_table(database.id, "products")


def test_columns_append_in_order(temp_store):
    """Columns without an explicit order are appended."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    table = temp_store.create_table(database.id, "products")
    temp_store.create_column(table.id, "name", semantic_type="product_name")
    temp_store.create_column(table.id, "price", type="number", semantic_type="product_price")

    columns = temp_store.list_columns(table.id)

    assert [(c.name, c.order) for c in columns] == [("name", 0), ("price", 1)]
    assert [c.name for c in temp_store.find_table(database.id, "products").columns] == ["name", "price"]


def test_update_column(temp_store):
    """Column tags can be changed; unknown fields are rejected."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    table = temp_store.create_table(database.id, "products")
    column = temp_store.create_column(table.id, "cost")

    updated = temp_store.update_column(column.id, semantic_type="product_price", type="number")

    assert updated.semantic_type == "product_price"
    assert updated.type == "number"
    with pytest.raises(ValidationError):
        temp_store.update_column(column.id, name="renamed")


def test_cells_are_upserted(temp_store):
    """Writing a cell twice keeps one cell with the last value."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    table = temp_store.create_table(database.id, "products")
    column = temp_store.create_column(table.id, "name")
    row = temp_store.create_row(table.id)

    temp_store.create_cells([CellWrite(row.id, column.id, "Old")])
    temp_store.create_cells([CellWrite(row.id, column.id, "New")])
    temp_store.update_cell(row.id, column.id, "Newest")

    stored = temp_store.find_row(table.id, row.id)
    assert len(stored.cells) == 1
    assert stored.value_of(column.id) == "Newest"


def test_update_cell_missing_row(temp_store):
    """Cells need an existing row."""
    with pytest.raises(NotFoundError):
        temp_store.update_cell(999, 1, "x")


def test_find_rows_with_filters(temp_store):
    """Filters match plain values and one-element reference lists."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    table = temp_store.create_table(database.id, "items")
    ref = temp_store.create_column(table.id, "invoice_id", type="reference")
    rows = [temp_store.create_row(table.id) for _ in range(3)]
    temp_store.create_cells(
        [
            CellWrite(rows[0].id, ref.id, [10]),
            CellWrite(rows[1].id, ref.id, [11]),
            CellWrite(rows[2].id, ref.id, [10]),
        ]
    )

    matched = temp_store.find_rows(table.id, {ref.id: 10})

    assert [r.id for r in matched] == [rows[0].id, rows[2].id]
    assert len(temp_store.find_rows(table.id)) == 3


def test_delete_rows_removes_cells(temp_store):
    """Deleting rows removes them and their cells."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    table = temp_store.create_table(database.id, "items")
    column = temp_store.create_column(table.id, "name")
    row = temp_store.create_row(table.id)
    temp_store.create_cells([CellWrite(row.id, column.id, "x")])

    assert temp_store.delete_rows(table.id, [row.id]) == 1
    assert temp_store.find_row(table.id, row.id) is None
    assert temp_store.delete_rows(table.id, []) == 0


def test_run_transaction_rolls_back(temp_store):
    """An exception inside run_transaction undoes every write."""

    def work(store):
        store.create_tenant("Doomed")
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        temp_store.run_transaction(work)

    assert temp_store.list_tenants() == []


def test_nested_transactions_join(temp_store):
    """Nested run_transaction calls share the outer transaction."""

    def inner(store):
        store.create_tenant("Inner")

    def outer(store):
        store.create_tenant("Outer")
        store.run_transaction(inner)
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        temp_store.run_transaction(outer)

    assert temp_store.list_tenants() == []


def test_run_transaction_returns_value(temp_store):
    """The callable's result is returned after commit."""
    tenant = temp_store.run_transaction(lambda store: store.create_tenant("Acme"))
    assert temp_store.get_tenant(tenant.id).name == "Acme"


def test_compare_and_set_series_counter(temp_store):
    """The counter only moves when the expected value still holds."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    record = temp_store.create_series(tenant.id, database.id, "INV", current_number=5)

    assert temp_store.compare_and_set_series_counter(record.id, 5, 6, 2024) is True
    assert temp_store.compare_and_set_series_counter(record.id, 5, 6, 2024) is False

    stored = temp_store.find_series(tenant.id, database.id, "INV")
    assert stored.current_number == 6
    assert stored.last_year == 2024


def test_duplicate_series_is_a_conflict(temp_store):
    """Series names are unique per tenant and database."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    temp_store.create_series(tenant.id, database.id, "INV")

    with pytest.raises(ConflictError):
        temp_store.create_series(tenant.id, database.id, "INV")


def test_delete_series(temp_store):
    """Series can be deleted by ID."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    record = temp_store.create_series(tenant.id, database.id, "INV")

    temp_store.delete_series(record.id)

    assert temp_store.list_series(tenant.id, database.id) == []
    with pytest.raises(NotFoundError):
        temp_store.delete_series(record.id)


def test_duplicate_series_keeps_transaction_usable(temp_store):
    """A duplicate series insert inside a transaction does not abort it."""
    tenant = temp_store.create_tenant("Acme")
    database = temp_store.create_database(tenant.id, "Main", is_default=True)
    temp_store.create_series(tenant.id, database.id, "INV")

    def work(store):
        with pytest.raises(ConflictError):
            store.create_series(tenant.id, database.id, "INV")
        return store.create_series(tenant.id, database.id, "PRO")

    created = temp_store.run_transaction(work)

    assert created.series == "PRO"
    assert [s.series for s in temp_store.list_series(tenant.id, database.id)] == ["INV", "PRO"]
