"""Invoice assembly: validation, numbering, item resolution and totals."""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from loguru import logger

from invoicegrid.database.base import RowStore
from invoicegrid.domain.catalog import is_currency_code, resolve_database
from invoicegrid.domain.entities import (
    CreatedInvoice,
    InvoiceDetails,
    InvoiceProductRequest,
    InvoiceRequest,
    InvoiceTables,
    InvoiceTotals,
    LineItem,
    ProductDetails,
    Row,
    Table,
)
from invoicegrid.domain.errors import NotFoundError, ValidationError, row_not_found, tenant_not_found
from invoicegrid.domain.invoice_schema import InvoiceSchemaService
from invoicegrid.domain.semantic_resolver import (
    SemanticColumnMap,
    build_semantic_map,
    extract_product_details,
    validate_table_for_invoices,
    validation_message,
)
from invoicegrid.domain.semantic_types import SemanticType as S
from invoicegrid.domain.series import SeriesAllocator, tenant_series_config
from invoicegrid.domain.totals import calculate_invoice_totals, line_amounts, quantize_money
from invoicegrid.utils.amount_parser import to_decimal, to_json_number
from invoicegrid.utils.cell_buffer import CellWriteBuffer
from invoicegrid.utils.date_parser import format_date

VALID_STATUSES = ("draft", "issued", "paid", "overdue", "cancelled")
FALLBACK_CURRENCY = "USD"

# Product detail fields copied onto item rows
ITEM_DETAIL_TAGS = (
    ("name", S.PRODUCT_NAME),
    ("description", S.PRODUCT_DESCRIPTION),
    ("category", S.PRODUCT_CATEGORY),
    ("sku", S.PRODUCT_SKU),
    ("brand", S.PRODUCT_BRAND),
    ("weight", S.PRODUCT_WEIGHT),
    ("dimensions", S.PRODUCT_DIMENSIONS),
)


def _put(buffer: CellWriteBuffer, row_id: int, mapping: SemanticColumnMap, tag: S, value: Any) -> None:
    column = mapping.get(tag)
    if column is None or value is None:
        return
    if isinstance(value, Decimal):
        value = to_json_number(value)
    buffer.set(row_id, column.id, value)


def _reference_id(value: Any) -> Optional[int]:
    if isinstance(value, list):
        value = value[0] if value else None
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def validate_invoice_request(request: InvoiceRequest, today: Optional[date] = None) -> None:
    """Check an invoice request before anything is written.

    Raises:
        ValidationError: For the first invalid field, naming it in ``field``
    """
    today = today or date.today()
    if not isinstance(request.customer_id, int) or request.customer_id <= 0:
        raise ValidationError("Customer ID must be a positive integer", field="customer_id")
    if not is_currency_code((request.base_currency or "").strip().upper()):
        raise ValidationError("Base currency must be a 3-letter code", field="base_currency")
    if not isinstance(request.due_date, date):
        raise ValidationError("Due date is required", field="due_date")
    if request.due_date < today:
        raise ValidationError("Due date cannot be in the past", field="due_date")
    if not (request.payment_method or "").strip():
        raise ValidationError("Payment method is required", field="payment_method")
    if request.status not in VALID_STATUSES:
        raise ValidationError(
            f"Invalid status '{request.status}'. Must be one of: {', '.join(VALID_STATUSES)}", field="status"
        )
    if not request.products:
        raise ValidationError("An invoice needs at least one product", field="products")

    for index, product in enumerate(request.products):
        field = f"products[{index}]"
        if not (product.product_ref_table or "").strip():
            raise ValidationError("Product table is required", field=f"{field}.product_ref_table")
        if not isinstance(product.product_ref_id, int) or product.product_ref_id <= 0:
            raise ValidationError("Product ID must be a positive integer", field=f"{field}.product_ref_id")
        quantity = to_decimal(product.quantity)
        if quantity is None or quantity <= 0:
            raise ValidationError("Quantity must be a positive number", field=f"{field}.quantity")
        if product.price is not None:
            price = to_decimal(product.price)
            if price is None or price < 0:
                raise ValidationError("Price must be a non-negative number", field=f"{field}.price")
        if product.currency is not None and not is_currency_code(product.currency.strip().upper()):
            raise ValidationError("Currency must be a 3-letter code", field=f"{field}.currency")


def build_line_item(product: InvoiceProductRequest, details: ProductDetails) -> LineItem:
    """Combine a requested line with the resolved product.

    The requested price and currency win over the product's; without
    either, the price is 0 and the currency USD. VAT always comes from the
    product.
    """
    price = to_decimal(product.price)
    if price is None:
        price = details.price if details.price is not None else Decimal("0")
    currency = (product.currency or "").strip().upper() or details.currency or FALLBACK_CURRENCY
    vat = details.vat if details.vat is not None else Decimal("0")
    return LineItem(quantity=to_decimal(product.quantity), price=price, currency=currency, vat_rate=vat)


class InvoiceAssembler:
    """Service that creates, reads and removes invoices stored in protected tables."""

    def __init__(self, store: RowStore):
        """Initialize invoice assembler.

        Args:
            store: Row store instance
        """
        self.store = store

    def create_invoice(
        self,
        tenant_id: int,
        request: InvoiceRequest,
        database_id: Optional[int] = None,
        on_date: Optional[date] = None,
    ) -> CreatedInvoice:
        """Create an invoice with its items in one transaction.

        The invoice number is allocated inside the same transaction, so a
        failure anywhere leaves neither rows nor a consumed number behind.

        Args:
            tenant_id: Tenant ID
            request: Invoice request
            database_id: Database ID, defaults to the tenant's default database
            on_date: Invoice date, defaults to today

        Returns:
            CreatedInvoice summary

        Raises:
            ValidationError: If the request is invalid
            NotFoundError: If the tenant, database or customer does not exist
            SchemaError: If the invoice tables cannot be repaired
            ConflictError: If number allocation keeps losing races
            StorageError: If the store fails
        """
        on_date = on_date or date.today()
        validate_invoice_request(request, on_date)
        created = self.store.run_transaction(
            lambda store: self._create(store, tenant_id, request, database_id, on_date)
        )
        logger.info(
            "Created invoice {} ({} items, total {}) for tenant {}",
            created.invoice_number,
            created.items_count,
            created.total_amount,
            tenant_id,
        )
        return created

    def _create(
        self,
        store: RowStore,
        tenant_id: int,
        request: InvoiceRequest,
        database_id: Optional[int],
        on_date: date,
    ) -> CreatedInvoice:
        tenant = store.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError(tenant_not_found(tenant_id))
        database = resolve_database(store, tenant_id, database_id)
        tables = InvoiceSchemaService(store).ensure_schema(tenant_id, database.id)

        if store.find_row(tables.customers.id, request.customer_id) is None:
            raise NotFoundError(row_not_found(request.customer_id, tables.customers.name), field="customer_id")

        resolved = [(product, self._resolve_product(store, database.id, product)) for product in request.products]

        config = tenant_series_config(tenant, request.invoice_series)
        number = SeriesAllocator(store).allocate(tenant_id, database.id, config, on_date)

        base_currency = request.base_currency.strip().upper()
        invoice_map = build_semantic_map(tables.invoices.columns)
        item_map = build_semantic_map(tables.invoice_items.columns)
        buffer = CellWriteBuffer()

        invoice_row = store.create_row(tables.invoices.id)
        for tag, value in (
            (S.INVOICE_NUMBER, number.number),
            (S.INVOICE_SERIES, number.series),
            (S.INVOICE_DATE, format_date(on_date)),
            (S.INVOICE_DUE_DATE, format_date(request.due_date)),
            (S.INVOICE_CUSTOMER_ID, [request.customer_id]),
            (S.INVOICE_STATUS, request.status),
            (S.INVOICE_PAYMENT_TERMS, request.payment_terms),
            (S.INVOICE_PAYMENT_METHOD, request.payment_method.strip()),
            (S.INVOICE_NOTES, request.notes),
            (S.INVOICE_BASE_CURRENCY, base_currency),
        ):
            _put(buffer, invoice_row.id, invoice_map, tag, value)

        lines: list[LineItem] = []
        for product, details in resolved:
            line = build_line_item(product, details)
            lines.append(line)
            _, line_vat, line_total = line_amounts(line)

            item_row = store.create_row(tables.invoice_items.id)
            for tag, value in (
                (S.REFERENCE, [invoice_row.id]),
                (S.PRODUCT_TABLE, product.product_ref_table),
                (S.ID, product.product_ref_id),
                (S.QUANTITY, line.quantity),
                (S.UNIT_OF_MEASURE, product.unit_of_measure),
                (S.UNIT_PRICE, line.price),
                (S.CURRENCY, line.currency),
                (S.PRODUCT_VAT, line.vat_rate),
                (S.DESCRIPTION, product.description or details.description),
                (S.TAX_AMOUNT, quantize_money(line_vat)),
                (S.TOTAL_PRICE, quantize_money(line_total)),
            ):
                _put(buffer, item_row.id, item_map, tag, value)
            for field_name, tag in ITEM_DETAIL_TAGS:
                _put(buffer, item_row.id, item_map, tag, getattr(details, field_name))

        totals = calculate_invoice_totals(lines, base_currency)
        self._warn_on_approximation(totals, number.number)
        _put(buffer, invoice_row.id, invoice_map, S.INVOICE_SUBTOTAL, totals.subtotal)
        _put(buffer, invoice_row.id, invoice_map, S.INVOICE_TAX_TOTAL, totals.vat_total)
        _put(buffer, invoice_row.id, invoice_map, S.INVOICE_TOTAL_AMOUNT, totals.grand_total)

        buffer.flush(store)

        return CreatedInvoice(
            id=invoice_row.id,
            invoice_number=number.number,
            invoice_series=number.series,
            customer_id=request.customer_id,
            status=request.status,
            subtotal=totals.subtotal,
            tax_total=totals.vat_total,
            total_amount=totals.grand_total,
            items_count=totals.items_count,
        )

    def _resolve_product(self, store: RowStore, database_id: int, product: InvoiceProductRequest) -> ProductDetails:
        table = store.find_table(database_id, product.product_ref_table)
        if table is None:
            logger.warning(
                "Product table '{}' not found, using request values only", product.product_ref_table
            )
            return ProductDetails()
        validation = validate_table_for_invoices(table.columns, table.name)
        if not validation.is_valid or validation.warnings:
            logger.warning(validation_message(validation, table.name))
        row = store.find_row(table.id, product.product_ref_id)
        if row is None:
            logger.warning(
                "Product {} not found in table '{}', using request values only",
                product.product_ref_id,
                table.name,
            )
            return ProductDetails()
        return extract_product_details(table.columns, row.cells)

    def _warn_on_approximation(self, totals: InvoiceTotals, invoice_number: str) -> None:
        if totals.is_mixed_currency and totals.has_unconverted:
            logger.warning(
                "Invoice {} mixes currencies {} without exchange rates for {}; totals are face-value sums",
                invoice_number,
                ", ".join(sorted(totals.totals_by_currency)),
                ", ".join(totals.unconverted_currencies),
            )

    # Read, status and delete operations
    def _tables(self, tenant_id: int, database_id: Optional[int]) -> InvoiceTables:
        return InvoiceSchemaService(self.store).get_invoice_tables(tenant_id, database_id)

    def _invoice_row(self, tables: InvoiceTables, invoice_id: int) -> Row:
        row = self.store.find_row(tables.invoices.id, invoice_id) if tables.invoices is not None else None
        if row is None:
            raise NotFoundError(row_not_found(invoice_id, "invoices"))
        return row

    def _item_rows(self, tables: InvoiceTables, invoice_id: int) -> list[Row]:
        if tables.invoice_items is None:
            return []
        reference = build_semantic_map(tables.invoice_items.columns).get(S.REFERENCE)
        if reference is None:
            return []
        return self.store.find_rows(tables.invoice_items.id, {reference.id: invoice_id})

    @staticmethod
    def _row_dict(table: Table, row: Row) -> dict[str, Any]:
        data: dict[str, Any] = {"id": row.id}
        for column in table.columns:
            data[column.name] = row.value_of(column.id)
        return data

    def get_invoice(self, tenant_id: int, invoice_id: int, database_id: Optional[int] = None) -> InvoiceDetails:
        """Read an invoice with its items and totals recomputed from the items.

        Raises:
            NotFoundError: If the invoice does not exist
        """
        tables = self._tables(tenant_id, database_id)
        row = self._invoice_row(tables, invoice_id)
        items = self._item_rows(tables, invoice_id)

        invoice_map = build_semantic_map(tables.invoices.columns)
        base_column = invoice_map.get(S.INVOICE_BASE_CURRENCY)
        base_currency = row.value_of(base_column.id) if base_column is not None else None
        if not base_currency:
            base_currency = self.store.get_tenant(tenant_id).default_currency

        lines = []
        if items:
            item_map = build_semantic_map(tables.invoice_items.columns)

            def value(item: Row, tag: S) -> Any:
                column = item_map.get(tag)
                return item.value_of(column.id) if column is not None else None

            lines = [
                LineItem(
                    quantity=value(item, S.QUANTITY),
                    price=value(item, S.UNIT_PRICE),
                    currency=value(item, S.CURRENCY),
                    vat_rate=value(item, S.PRODUCT_VAT),
                )
                for item in items
            ]

        return InvoiceDetails(
            id=row.id,
            fields=self._row_dict(tables.invoices, row),
            items=tuple(self._row_dict(tables.invoice_items, item) for item in items),
            totals=calculate_invoice_totals(lines, base_currency),
        )

    def list_invoices(self, tenant_id: int, database_id: Optional[int] = None) -> list[dict[str, Any]]:
        """List invoices of a tenant database, oldest first."""
        tables = self._tables(tenant_id, database_id)
        if tables.invoices is None:
            return []
        mapping = build_semantic_map(tables.invoices.columns)

        def value(row: Row, tag: S) -> Any:
            column = mapping.get(tag)
            return row.value_of(column.id) if column is not None else None

        return [
            {
                "id": row.id,
                "invoice_number": value(row, S.INVOICE_NUMBER),
                "invoice_series": value(row, S.INVOICE_SERIES),
                "date": value(row, S.INVOICE_DATE),
                "due_date": value(row, S.INVOICE_DUE_DATE),
                "customer_id": _reference_id(value(row, S.INVOICE_CUSTOMER_ID)),
                "status": value(row, S.INVOICE_STATUS),
                "base_currency": value(row, S.INVOICE_BASE_CURRENCY),
                "total_amount": to_decimal(value(row, S.INVOICE_TOTAL_AMOUNT)),
            }
            for row in self.store.find_rows(tables.invoices.id)
        ]

    def update_status(
        self, tenant_id: int, invoice_id: int, status: str, database_id: Optional[int] = None
    ) -> None:
        """Change the status of an invoice.

        Raises:
            ValidationError: If the status is unknown
            NotFoundError: If the invoice does not exist
        """
        status = (status or "").strip().lower()
        if status not in VALID_STATUSES:
            raise ValidationError(
                f"Invalid status '{status}'. Must be one of: {', '.join(VALID_STATUSES)}", field="status"
            )

        def work(store: RowStore) -> None:
            tables = self._tables(tenant_id, database_id)
            row = self._invoice_row(tables, invoice_id)
            column = build_semantic_map(tables.invoices.columns).get(S.INVOICE_STATUS)
            if column is None:
                raise NotFoundError("Invoices table has no status column", field="status")
            store.update_cell(row.id, column.id, status)

        self.store.run_transaction(work)
        logger.info("Invoice {} status set to {}", invoice_id, status)

    def delete_invoice(self, tenant_id: int, invoice_id: int, database_id: Optional[int] = None) -> int:
        """Delete an invoice and its items.

        Returns:
            Number of item rows deleted

        Raises:
            NotFoundError: If the invoice does not exist
        """

        def work(store: RowStore) -> int:
            tables = self._tables(tenant_id, database_id)
            row = self._invoice_row(tables, invoice_id)
            items = self._item_rows(tables, invoice_id)
            deleted = store.delete_rows(tables.invoice_items.id, [item.id for item in items]) if items else 0
            store.delete_rows(tables.invoices.id, [row.id])
            return deleted

        deleted = self.store.run_transaction(work)
        logger.info("Deleted invoice {} with {} items", invoice_id, deleted)
        return deleted
