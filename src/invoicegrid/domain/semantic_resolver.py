"""Resolve product details from arbitrary tables via column semantic types."""

from typing import Any, Iterable, Optional

from invoicegrid.domain.entities import Cell, Column, ProductDetails, TableValidation
from invoicegrid.domain.semantic_types import PRICE_TYPES, SemanticType
from invoicegrid.utils.amount_parser import to_decimal

SemanticColumnMap = dict[SemanticType, Column]

# Product-specific tags come before generic ones; the first match wins.
FIELD_TAGS: dict[str, tuple[SemanticType, ...]] = {
    "name": (SemanticType.PRODUCT_NAME, SemanticType.NAME),
    "description": (SemanticType.PRODUCT_DESCRIPTION, SemanticType.DESCRIPTION),
    "category": (SemanticType.PRODUCT_CATEGORY,),
    "sku": (SemanticType.PRODUCT_SKU, SemanticType.CODE),
    "brand": (SemanticType.PRODUCT_BRAND,),
    "weight": (SemanticType.PRODUCT_WEIGHT,),
    "dimensions": (SemanticType.PRODUCT_DIMENSIONS,),
    "price": PRICE_TYPES,
    "currency": (SemanticType.CURRENCY, SemanticType.INVOICE_CURRENCY),
    "vat": (SemanticType.PRODUCT_VAT, SemanticType.TAX_RATE),
}

NUMERIC_FIELDS = frozenset({"price", "vat", "weight"})


def build_semantic_map(columns: Iterable[Column]) -> SemanticColumnMap:
    """Index columns by semantic type. The first column carrying a tag keeps it."""
    mapping: SemanticColumnMap = {}
    for column in columns:
        tag = SemanticType.parse(column.semantic_type)
        if tag is not None and tag not in mapping:
            mapping[tag] = column
    return mapping


def find_column(mapping: SemanticColumnMap, *tags: SemanticType) -> Optional[Column]:
    """Return the column for the first tag present in ``mapping``."""
    for tag in tags:
        column = mapping.get(tag)
        if column is not None:
            return column
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, list):
        value = value[0] if value else None
        if value is None:
            return None
    text = str(value).strip()
    return text or None


def extract_product_details(columns: Iterable[Column], cells: Iterable[Cell]) -> ProductDetails:
    """Build a ProductDetails record from a product row.

    Fields without a matching column or cell are left as None. Numeric
    fields are coerced to Decimal; unparseable values become None.

    Args:
        columns: Columns of the product table
        cells: Cells of the product row

    Returns:
        ProductDetails with every field it could resolve
    """
    mapping = build_semantic_map(columns)
    values = {cell.column_id: cell.value for cell in cells}

    fields: dict[str, Any] = {}
    for field_name, tags in FIELD_TAGS.items():
        column = find_column(mapping, *tags)
        raw = values.get(column.id) if column is not None else None
        if field_name in NUMERIC_FIELDS:
            fields[field_name] = to_decimal(raw)
        else:
            fields[field_name] = _text(raw)

    if fields["currency"]:
        fields["currency"] = fields["currency"].upper()
    return ProductDetails(**fields)


def validate_table_for_invoices(columns: Iterable[Column], table_name: str = "") -> TableValidation:
    """Check whether a table can be used as an invoice product source.

    A table without any price-bearing column cannot be invoiced from.
    Missing name, currency or VAT columns only produce warnings because the
    invoice falls back to defaults for them.
    """
    mapping = build_semantic_map(columns)
    reasons: list[str] = []
    warnings: list[str] = []

    if find_column(mapping, *FIELD_TAGS["price"]) is None:
        subject = f"table '{table_name}' has " if table_name else ""
        reasons.append(f"{subject}no price column (product_price, unit_price or price)")
    if find_column(mapping, *FIELD_TAGS["name"]) is None:
        warnings.append("no name column, items will have no product name")
    if find_column(mapping, *FIELD_TAGS["currency"]) is None:
        warnings.append("no currency column, the invoice currency will be used")
    if find_column(mapping, *FIELD_TAGS["vat"]) is None:
        warnings.append("no VAT column, a 0% rate will be used")

    return TableValidation(is_valid=not reasons, reasons=tuple(reasons), warnings=tuple(warnings))


def validation_message(validation: TableValidation, table_name: str) -> str:
    """Render a validation result as one log-friendly line."""
    if validation.is_valid and not validation.warnings:
        return f"Table '{table_name}' is ready for invoices"
    parts = []
    if not validation.is_valid:
        parts.append(f"cannot be used for invoices: {'; '.join(validation.reasons)}")
    if validation.warnings:
        parts.append(f"warnings: {'; '.join(validation.warnings)}")
    return f"Table '{table_name}' " + ", ".join(parts)
