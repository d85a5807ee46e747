"""Tests for invoice totals calculation."""

from decimal import Decimal

import pytest

from invoicegrid.domain.entities import LineItem
from invoicegrid.domain.totals import calculate_invoice_totals, line_amounts, quantize_money


def test_basic_totals():
    """Two lines: 2 x 10 at 20% VAT and 1 x 5 at 0% VAT."""
    items = [
        LineItem(quantity=2, price=10, currency="USD", vat_rate=20),
        LineItem(quantity=1, price=5, currency="USD", vat_rate=0),
    ]
    totals = calculate_invoice_totals(items, "USD")

    assert totals.subtotal == Decimal("25.00")
    assert totals.vat_total == Decimal("4.00")
    assert totals.grand_total == Decimal("29.00")
    assert totals.subtotal_in_base_currency == Decimal("25.00")
    assert totals.totals_by_currency == {"USD": Decimal("29.00")}
    assert totals.vat_totals_by_currency == {"USD": Decimal("4.00")}
    assert totals.items_count == 2
    assert not totals.is_mixed_currency


def test_missing_price_counts_as_zero():
    """A line without a price contributes nothing and totals stay finite."""
    totals = calculate_invoice_totals([LineItem(quantity=3, price=None, currency="USD", vat_rate=19)])

    assert totals.subtotal == Decimal("0")
    assert totals.vat_total == Decimal("0")
    assert totals.grand_total == Decimal("0")
    assert totals.grand_total.is_finite()
    assert totals.items_count == 1


@pytest.mark.parametrize("bad_value", [None, "abc", float("nan"), float("inf"), Decimal("NaN"), "", True])
def test_invalid_numbers_count_as_zero(bad_value):
    """Non-numeric and non-finite values never poison the totals."""
    items = [
        LineItem(quantity=bad_value, price=10, vat_rate=10),
        LineItem(quantity=1, price=bad_value, vat_rate=10),
        LineItem(quantity=1, price=10, vat_rate=bad_value),
    ]
    totals = calculate_invoice_totals(items)

    assert totals.subtotal == Decimal("10.00")
    assert totals.vat_total == Decimal("0.00")
    for value in (totals.subtotal, totals.vat_total, totals.grand_total, totals.subtotal_in_base_currency):
        assert value.is_finite()


def test_numeric_strings_are_accepted():
    """Cell values stored as text still compute."""
    totals = calculate_invoice_totals([LineItem(quantity="2", price="10.50", vat_rate="10")])

    assert totals.subtotal == Decimal("21.00")
    assert totals.vat_total == Decimal("2.10")
    assert totals.grand_total == Decimal("23.10")


def test_missing_currency_uses_base_currency():
    """Lines without a currency are grouped under the base currency."""
    totals = calculate_invoice_totals([LineItem(quantity=1, price=7)], base_currency="eur")

    assert totals.base_currency == "EUR"
    assert totals.totals_by_currency == {"EUR": Decimal("7.00")}


def test_mixed_currencies_without_rates_sum_face_values():
    """Without exchange rates the totals add amounts as they are and flag it."""
    items = [
        LineItem(quantity=1, price=10, currency="USD", vat_rate=0),
        LineItem(quantity=1, price=10, currency="EUR", vat_rate=0),
    ]
    totals = calculate_invoice_totals(items, "USD")

    assert totals.grand_total == Decimal("20.00")
    assert totals.subtotal_in_base_currency == Decimal("20.00")
    assert totals.totals_by_currency == {"USD": Decimal("10.00"), "EUR": Decimal("10.00")}
    assert totals.is_mixed_currency
    assert totals.has_unconverted
    assert totals.unconverted_currencies == ("EUR",)


def test_exchange_rates_convert_base_subtotal():
    """Rates convert foreign lines into the base subtotal only."""
    items = [
        LineItem(quantity=1, price=10, currency="USD", vat_rate=0),
        LineItem(quantity=2, price=5, currency="EUR", vat_rate=0),
    ]
    totals = calculate_invoice_totals(items, "USD", exchange_rates={"EUR": "1.1"})

    assert totals.subtotal_in_base_currency == Decimal("21.00")
    assert totals.subtotal == Decimal("20.00")
    assert totals.unconverted_currencies == ()
    assert not totals.has_unconverted


def test_per_currency_vat_totals():
    """VAT is grouped by each line's own currency."""
    items = [
        LineItem(quantity=1, price=100, currency="USD", vat_rate=10),
        LineItem(quantity=1, price=50, currency="RON", vat_rate=19),
    ]
    totals = calculate_invoice_totals(items, "USD")

    assert totals.vat_totals_by_currency == {"USD": Decimal("10.00"), "RON": Decimal("9.50")}
    assert totals.totals_by_currency["RON"] == Decimal("59.50")


def test_rounding_is_half_up_to_cents():
    """Totals are rounded to cents, half up."""
    totals = calculate_invoice_totals([LineItem(quantity=1, price="0.125", vat_rate=0)])
    assert totals.subtotal == Decimal("0.13")
    assert quantize_money(Decimal("2.675")) == Decimal("2.68")


def test_empty_items():
    """No items give zero totals."""
    totals = calculate_invoice_totals([], "USD")

    assert totals.grand_total == Decimal("0")
    assert totals.items_count == 0
    assert totals.totals_by_currency == {}


def test_line_amounts():
    """Line subtotal, VAT and total for one item."""
    subtotal, vat, total = line_amounts(LineItem(quantity=3, price="4.50", vat_rate=20))
    assert subtotal == Decimal("13.50")
    assert vat == Decimal("2.70")
    assert total == Decimal("16.20")


def test_grand_total_adds_rounded_parts():
    """The grand total equals the rounded subtotal plus the rounded VAT."""
    totals = calculate_invoice_totals([LineItem(quantity=1, price="0.125", currency="USD", vat_rate=20)])

    assert totals.subtotal == Decimal("0.13")
    assert totals.vat_total == Decimal("0.03")
    assert totals.grand_total == totals.subtotal + totals.vat_total
    assert totals.grand_total == Decimal("0.16")


@pytest.mark.parametrize("rate", ["0", "-1.1", 0, -2])
def test_non_positive_rates_are_ignored(rate):
    """Zero or negative rates are treated like a missing rate."""
    items = [
        LineItem(quantity=1, price=10, currency="USD", vat_rate=0),
        LineItem(quantity=2, price=5, currency="EUR", vat_rate=0),
    ]
    totals = calculate_invoice_totals(items, "USD", exchange_rates={"EUR": rate})

    assert totals.subtotal_in_base_currency == Decimal("20.00")
    assert totals.unconverted_currencies == ("EUR",)
