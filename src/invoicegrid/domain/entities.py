"""Domain model entities for invoicegrid.

These are pure data classes representing business concepts, independent of
the database schema. Storage entities mirror the generic table/row/cell
model; invoice entities are the values the numbering and totals logic
works with.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional


@dataclass(frozen=True)
class Tenant:
    """Tenant with its invoice numbering settings."""

    id: int
    name: str
    default_currency: str
    invoice_series_prefix: str
    invoice_include_year: bool
    invoice_start_number: int
    created_at: datetime


@dataclass(frozen=True)
class TenantDatabase:
    """A tenant-owned database grouping tables."""

    id: int
    tenant_id: int
    name: str
    is_default: bool
    created_at: datetime


@dataclass(frozen=True)
class Column:
    """Column descriptor of a generic table."""

    id: int
    table_id: int
    name: str
    type: str
    semantic_type: Optional[str]
    required: bool = False
    order: int = 0
    is_locked: bool = False
    reference_table_id: Optional[int] = None


@dataclass(frozen=True)
class Table:
    """Generic table with its columns."""

    id: int
    database_id: int
    name: str
    description: Optional[str]
    is_protected: bool
    protected_type: Optional[str]
    created_at: datetime
    columns: tuple[Column, ...] = ()

    def column_named(self, name: str) -> Optional[Column]:
        """Return the column with the given name, if any."""
        for column in self.columns:
            if column.name == name:
                return column
        return None


@dataclass(frozen=True)
class Cell:
    """Stored cell value of one row/column pair."""

    id: int
    row_id: int
    column_id: int
    value: Any


@dataclass(frozen=True)
class CellWrite:
    """Cell value to be written by the row store."""

    row_id: int
    column_id: int
    value: Any


@dataclass(frozen=True)
class Row:
    """Generic row with its cells."""

    id: int
    table_id: int
    created_at: datetime
    cells: tuple[Cell, ...] = ()

    def value_of(self, column_id: int, default: Any = None) -> Any:
        """Return the value stored for ``column_id``."""
        for cell in self.cells:
            if cell.column_id == column_id:
                return cell.value
        return default


@dataclass(frozen=True)
class InvoiceSeries:
    """Persisted numbering state for one tenant/database/series."""

    id: int
    tenant_id: int
    database_id: int
    series: str
    prefix: str
    suffix: str
    separator: str
    include_year: bool
    include_month: bool
    reset_yearly: bool
    current_number: int
    last_year: Optional[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class SeriesConfig:
    """Numbering configuration passed to the allocator."""

    series: str = "INV"
    prefix: Optional[str] = None
    suffix: str = ""
    separator: str = "-"
    include_year: bool = False
    include_month: bool = False
    reset_yearly: bool = False
    start_number: int = 1
    pad_width: int = 4


@dataclass(frozen=True)
class InvoiceNumber:
    """Allocated invoice number."""

    number: str
    series: str
    counter: int


@dataclass(frozen=True)
class LineItem:
    """Calculation input for one invoice line.

    Values are kept as given; the totals calculator treats anything that
    is not a finite number as zero.
    """

    quantity: Any = None
    price: Any = None
    currency: Optional[str] = None
    vat_rate: Any = None


@dataclass(frozen=True)
class ProductDetails:
    """Product record extracted from an arbitrary product table."""

    name: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    sku: Optional[str] = None
    brand: Optional[str] = None
    weight: Optional[Decimal] = None
    dimensions: Optional[str] = None
    price: Optional[Decimal] = None
    currency: Optional[str] = None
    vat: Optional[Decimal] = None


@dataclass(frozen=True)
class TableValidation:
    """Result of checking whether a table can serve as a product reference."""

    is_valid: bool
    reasons: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True)
class InvoiceTotals:
    """Totals computed for a set of line items."""

    subtotal: Decimal
    vat_total: Decimal
    grand_total: Decimal
    subtotal_in_base_currency: Decimal
    base_currency: str
    totals_by_currency: dict[str, Decimal] = field(default_factory=dict)
    vat_totals_by_currency: dict[str, Decimal] = field(default_factory=dict)
    items_count: int = 0
    unconverted_currencies: tuple[str, ...] = ()

    @property
    def is_mixed_currency(self) -> bool:
        """True when line items span more than one currency."""
        return len(self.totals_by_currency) > 1

    @property
    def has_unconverted(self) -> bool:
        """True when some non-base currency had no exchange rate."""
        return bool(self.unconverted_currencies)


@dataclass(frozen=True)
class InvoiceTables:
    """The three protected tables backing the invoice module."""

    customers: Optional[Table]
    invoices: Optional[Table]
    invoice_items: Optional[Table]


@dataclass(frozen=True)
class InvoiceProductRequest:
    """One requested invoice line."""

    product_ref_table: str
    product_ref_id: int
    quantity: Any
    currency: Optional[str] = None
    price: Any = None
    unit_of_measure: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class InvoiceRequest:
    """Create-invoice request."""

    customer_id: int
    base_currency: str
    due_date: date
    payment_method: str
    products: tuple[InvoiceProductRequest, ...]
    payment_terms: Optional[str] = None
    notes: Optional[str] = None
    status: str = "draft"
    invoice_series: Optional[str] = None


@dataclass(frozen=True)
class CreatedInvoice:
    """Result of a successful invoice creation."""

    id: int
    invoice_number: str
    invoice_series: str
    customer_id: int
    status: str
    subtotal: Decimal
    tax_total: Decimal
    total_amount: Decimal
    items_count: int


@dataclass(frozen=True)
class InvoiceDetails:
    """An invoice read back with its items and recomputed totals."""

    id: int
    fields: dict[str, Any]
    items: tuple[dict[str, Any], ...]
    totals: InvoiceTotals
