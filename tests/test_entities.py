"""Tests for domain entities."""

from dataclasses import FrozenInstanceError
from datetime import datetime, UTC
from decimal import Decimal

import pytest

from invoicegrid.domain.entities import Cell, Column, InvoiceTotals, Row, SeriesConfig, Table


def _column(column_id, name):
    return Column(id=column_id, table_id=1, name=name, type="string", semantic_type=None)


def test_table_column_named():
    """Columns are looked up by name."""
    table = Table(
        id=1,
        database_id=1,
        name="products",
        description=None,
        is_protected=False,
        protected_type=None,
        created_at=datetime.now(UTC),
        columns=(_column(1, "name"), _column(2, "price")),
    )

    assert table.column_named("price").id == 2
    assert table.column_named("missing") is None


def test_row_value_of():
    """Row values are looked up by column ID."""
    row = Row(id=1, table_id=1, created_at=datetime.now(UTC), cells=(Cell(1, 1, 7, "x"),))

    assert row.value_of(7) == "x"
    assert row.value_of(8) is None


def test_entities_are_frozen():
    """Entities cannot be mutated."""
    config = SeriesConfig()
    with pytest.raises(FrozenInstanceError):
        config.series = "OTHER"


def test_series_config_defaults():
    """Default numbering is INV with four-digit padding."""
    config = SeriesConfig()
    assert config.series == "INV"
    assert config.prefix is None
    assert config.pad_width == 4
    assert config.start_number == 1


def test_invoice_totals_flags():
    """Mixed currency and unconverted flags follow the totals."""
    totals = InvoiceTotals(
        subtotal=Decimal("10"),
        vat_total=Decimal("0"),
        grand_total=Decimal("10"),
        subtotal_in_base_currency=Decimal("10"),
        base_currency="USD",
        totals_by_currency={"USD": Decimal("5"), "EUR": Decimal("5")},
        unconverted_currencies=("EUR",),
    )

    assert totals.is_mixed_currency
    assert totals.has_unconverted
