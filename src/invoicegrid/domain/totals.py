"""Invoice totals calculation."""

from collections import defaultdict
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping, Optional

from invoicegrid.domain.entities import InvoiceTotals, LineItem
from invoicegrid.utils.amount_parser import coerce_amount

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def quantize_money(value: Decimal) -> Decimal:
    """Round an amount to cents, half up."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def line_amounts(item: LineItem) -> tuple[Decimal, Decimal, Decimal]:
    """Return (subtotal, vat, total) of one line, unrounded."""
    subtotal = coerce_amount(item.quantity) * coerce_amount(item.price)
    vat = subtotal * coerce_amount(item.vat_rate) / HUNDRED
    return subtotal, vat, subtotal + vat


def _currency(item: LineItem, base_currency: str) -> str:
    currency = (item.currency or "").strip().upper()
    return currency or base_currency


def calculate_invoice_totals(
    items: Iterable[LineItem],
    base_currency: str = "USD",
    exchange_rates: Optional[Mapping[str, object]] = None,
) -> InvoiceTotals:
    """Compute invoice totals from line items.

    Missing, non-numeric or non-finite quantity, price or VAT values count
    as zero, and a line without a currency is in ``base_currency``.

    ``subtotal``, ``vat_total`` and ``grand_total`` add every line at face
    value whatever its currency. ``subtotal_in_base_currency`` converts each
    line with ``exchange_rates[currency]`` (base units per unit of that
    currency) and adds lines without a positive rate unconverted; those
    currencies are listed in ``unconverted_currencies``. ``grand_total`` is
    the sum of the rounded ``subtotal`` and ``vat_total``.

    Args:
        items: Line items
        base_currency: Currency of the invoice
        exchange_rates: Optional conversion rates keyed by currency code

    Returns:
        InvoiceTotals rounded to cents
    """
    base_currency = (base_currency or "USD").strip().upper()
    rates = {code.upper(): coerce_amount(rate) for code, rate in (exchange_rates or {}).items()}

    subtotal = Decimal("0")
    vat_total = Decimal("0")
    subtotal_in_base = Decimal("0")
    totals_by_currency: dict[str, Decimal] = defaultdict(Decimal)
    vat_by_currency: dict[str, Decimal] = defaultdict(Decimal)
    unconverted: list[str] = []
    count = 0

    for item in items:
        count += 1
        line_subtotal, line_vat, line_total = line_amounts(item)
        currency = _currency(item, base_currency)

        subtotal += line_subtotal
        vat_total += line_vat
        totals_by_currency[currency] += line_total
        vat_by_currency[currency] += line_vat

        if currency == base_currency:
            subtotal_in_base += line_subtotal
        elif rates.get(currency, 0) > 0:
            subtotal_in_base += line_subtotal * rates[currency]
        else:
            subtotal_in_base += line_subtotal
            if currency not in unconverted:
                unconverted.append(currency)

    subtotal = quantize_money(subtotal)
    vat_total = quantize_money(vat_total)
    return InvoiceTotals(
        subtotal=subtotal,
        vat_total=vat_total,
        grand_total=subtotal + vat_total,
        subtotal_in_base_currency=quantize_money(subtotal_in_base),
        base_currency=base_currency,
        totals_by_currency={code: quantize_money(v) for code, v in totals_by_currency.items()},
        vat_totals_by_currency={code: quantize_money(v) for code, v in vat_by_currency.items()},
        items_count=count,
        unconverted_currencies=tuple(unconverted),
    )
