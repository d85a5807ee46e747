"""Protected invoice tables and their self-healing schema."""

from dataclasses import dataclass
from typing import Optional

from loguru import logger

from invoicegrid.database.base import RowStore
from invoicegrid.domain.catalog import resolve_database
from invoicegrid.domain.entities import InvoiceTables, Table
from invoicegrid.domain.errors import SchemaError, missing_semantic_columns
from invoicegrid.domain.semantic_resolver import build_semantic_map
from invoicegrid.domain.semantic_types import SemanticType as S

CUSTOMERS = "customers"
INVOICES = "invoices"
INVOICE_ITEMS = "invoice_items"


@dataclass(frozen=True)
class ColumnSpec:
    """Expected column of a protected table."""

    name: str
    type: str
    semantic_type: S
    required: bool = False
    references: Optional[str] = None


CUSTOMER_COLUMNS = (
    ColumnSpec("customer_name", "string", S.CUSTOMER_NAME, required=True),
    ColumnSpec("customer_email", "string", S.CUSTOMER_EMAIL),
    ColumnSpec("customer_tax_id", "string", S.CUSTOMER_TAX_ID),
    ColumnSpec("customer_registration_number", "string", S.CUSTOMER_REGISTRATION_NUMBER),
    ColumnSpec("customer_street", "string", S.CUSTOMER_STREET),
    ColumnSpec("customer_street_number", "string", S.CUSTOMER_STREET_NUMBER),
    ColumnSpec("customer_address", "string", S.CUSTOMER_ADDRESS),
    ColumnSpec("customer_city", "string", S.CUSTOMER_CITY),
    ColumnSpec("customer_country", "string", S.CUSTOMER_COUNTRY),
    ColumnSpec("customer_postal_code", "string", S.CUSTOMER_POSTAL_CODE),
    ColumnSpec("customer_phone", "string", S.CUSTOMER_PHONE),
)

INVOICE_COLUMNS = (
    ColumnSpec("invoice_number", "string", S.INVOICE_NUMBER, required=True),
    ColumnSpec("invoice_series", "string", S.INVOICE_SERIES, required=True),
    ColumnSpec("date", "date", S.INVOICE_DATE, required=True),
    ColumnSpec("due_date", "date", S.INVOICE_DUE_DATE, required=True),
    ColumnSpec("customer_id", "reference", S.INVOICE_CUSTOMER_ID, required=True, references=CUSTOMERS),
    ColumnSpec("status", "string", S.INVOICE_STATUS, required=True),
    ColumnSpec("payment_terms", "string", S.INVOICE_PAYMENT_TERMS),
    ColumnSpec("payment_method", "string", S.INVOICE_PAYMENT_METHOD),
    ColumnSpec("notes", "string", S.INVOICE_NOTES),
    ColumnSpec("base_currency", "string", S.INVOICE_BASE_CURRENCY),
    ColumnSpec("subtotal", "number", S.INVOICE_SUBTOTAL),
    ColumnSpec("tax_total", "number", S.INVOICE_TAX_TOTAL),
    ColumnSpec("total_amount", "number", S.INVOICE_TOTAL_AMOUNT),
)

INVOICE_ITEM_COLUMNS = (
    ColumnSpec("invoice_id", "reference", S.REFERENCE, required=True, references=INVOICES),
    ColumnSpec("product_ref_table", "string", S.PRODUCT_TABLE, required=True),
    ColumnSpec("product_ref_id", "number", S.ID, required=True),
    ColumnSpec("quantity", "number", S.QUANTITY, required=True),
    ColumnSpec("unit_of_measure", "string", S.UNIT_OF_MEASURE),
    ColumnSpec("price", "number", S.UNIT_PRICE, required=True),
    ColumnSpec("currency", "string", S.CURRENCY, required=True),
    ColumnSpec("product_name", "string", S.PRODUCT_NAME),
    ColumnSpec("product_description", "string", S.PRODUCT_DESCRIPTION),
    ColumnSpec("product_category", "string", S.PRODUCT_CATEGORY),
    ColumnSpec("product_sku", "string", S.PRODUCT_SKU),
    ColumnSpec("product_brand", "string", S.PRODUCT_BRAND),
    ColumnSpec("product_weight", "number", S.PRODUCT_WEIGHT),
    ColumnSpec("product_dimensions", "string", S.PRODUCT_DIMENSIONS),
    ColumnSpec("product_vat", "number", S.PRODUCT_VAT, required=True),
    ColumnSpec("description", "string", S.DESCRIPTION),
    ColumnSpec("tax_amount", "number", S.TAX_AMOUNT),
    ColumnSpec("total_price", "number", S.TOTAL_PRICE),
)

# Creation order matters: references point at tables created earlier.
TABLE_LAYOUTS: tuple[tuple[str, str, tuple[ColumnSpec, ...]], ...] = (
    (CUSTOMERS, "Invoice customers", CUSTOMER_COLUMNS),
    (INVOICES, "Issued invoices", INVOICE_COLUMNS),
    (INVOICE_ITEMS, "Invoice line items", INVOICE_ITEM_COLUMNS),
)


def required_semantic_types(specs: tuple[ColumnSpec, ...]) -> list[S]:
    """Semantic types a protected table cannot work without."""
    return [spec.semantic_type for spec in specs if spec.required]


class InvoiceSchemaService:
    """Service that creates and repairs the protected invoice tables."""

    def __init__(self, store: RowStore):
        """Initialize invoice schema service.

        Args:
            store: Row store instance
        """
        self.store = store

    def _find_protected(self, store: RowStore, database_id: int, protected_type: str) -> Optional[Table]:
        tables = store.find_tables(database_id, protected_type=protected_type)
        if tables:
            return tables[0]
        return store.find_table(database_id, protected_type)

    def get_invoice_tables(self, tenant_id: int, database_id: Optional[int] = None) -> InvoiceTables:
        """Return the protected tables as they are, without repairing them.

        Missing tables are returned as None.
        """
        database = resolve_database(self.store, tenant_id, database_id)
        return InvoiceTables(
            customers=self._find_protected(self.store, database.id, CUSTOMERS),
            invoices=self._find_protected(self.store, database.id, INVOICES),
            invoice_items=self._find_protected(self.store, database.id, INVOICE_ITEMS),
        )

    def ensure_schema(self, tenant_id: int, database_id: Optional[int] = None) -> InvoiceTables:
        """Create missing invoice tables and columns and fix wrong semantic tags.

        Safe to run repeatedly: a schema that is already complete is left
        untouched. Locked columns are never re-tagged.

        Args:
            tenant_id: Tenant ID
            database_id: Database ID, defaults to the tenant's default database

        Returns:
            InvoiceTables with the healed tables

        Raises:
            NotFoundError: If the tenant or database does not exist
            SchemaError: If a table still lacks required semantic columns
        """
        return self.store.run_transaction(lambda store: self._ensure(store, tenant_id, database_id))

    def _ensure(self, store: RowStore, tenant_id: int, database_id: Optional[int]) -> InvoiceTables:
        database = resolve_database(store, tenant_id, database_id)
        healed: dict[str, Table] = {}

        for protected_type, description, specs in TABLE_LAYOUTS:
            table = self._find_protected(store, database.id, protected_type)
            if table is None:
                table = store.create_table(
                    database.id,
                    protected_type,
                    description=description,
                    is_protected=True,
                    protected_type=protected_type,
                )
                logger.info("Created protected table '{}' in database {}", protected_type, database.id)

            changes = self._heal_columns(store, table, specs, healed)
            table = store.get_table(table.id)
            self._verify(table, specs)
            if changes:
                logger.info("Repaired {} column(s) of table '{}'", changes, table.name)
            healed[protected_type] = table

        return InvoiceTables(
            customers=healed[CUSTOMERS],
            invoices=healed[INVOICES],
            invoice_items=healed[INVOICE_ITEMS],
        )

    def _heal_columns(
        self,
        store: RowStore,
        table: Table,
        specs: tuple[ColumnSpec, ...],
        healed: dict[str, Table],
    ) -> int:
        changes = 0
        tagged = build_semantic_map(table.columns)
        for spec in specs:
            reference_id = healed[spec.references].id if spec.references else None
            column = table.column_named(spec.name)

            if column is None:
                if spec.semantic_type in tagged:
                    # Same meaning under a user-chosen name
                    continue
                store.create_column(
                    table.id,
                    spec.name,
                    type=spec.type,
                    semantic_type=spec.semantic_type.value,
                    required=spec.required,
                    reference_table_id=reference_id,
                )
                changes += 1
                continue

            if column.is_locked:
                continue
            updates = {}
            if column.semantic_type != spec.semantic_type.value and spec.semantic_type not in tagged:
                updates["semantic_type"] = spec.semantic_type.value
            if reference_id is not None and column.reference_table_id != reference_id:
                updates["reference_table_id"] = reference_id
                updates["type"] = "reference"
            if updates:
                logger.debug("Re-tagging column '{}.{}': {}", table.name, column.name, updates)
                store.update_column(column.id, **updates)
                changes += 1
        return changes

    def _verify(self, table: Table, specs: tuple[ColumnSpec, ...]) -> None:
        tagged = build_semantic_map(table.columns)
        missing = [tag.value for tag in required_semantic_types(specs) if tag not in tagged]
        if missing:
            raise SchemaError(missing_semantic_columns(table.name, missing))
