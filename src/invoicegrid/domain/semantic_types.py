"""Semantic column types.

A semantic type describes what a column means, independent of its name, so
invoice logic works against any user-defined table layout.
"""

from enum import Enum
from typing import Optional


class SemanticType(str, Enum):
    """Known semantic tags for table columns."""

    # Product related
    PRODUCT_NAME = "product_name"
    PRODUCT_DESCRIPTION = "product_description"
    PRODUCT_PRICE = "product_price"
    PRODUCT_VAT = "product_vat"
    PRODUCT_SKU = "product_sku"
    PRODUCT_CATEGORY = "product_category"
    PRODUCT_BRAND = "product_brand"
    PRODUCT_WEIGHT = "product_weight"
    PRODUCT_DIMENSIONS = "product_dimensions"
    PRODUCT_TABLE = "product_table"

    # Customer related
    CUSTOMER_NAME = "customer_name"
    CUSTOMER_EMAIL = "customer_email"
    CUSTOMER_PHONE = "customer_phone"
    CUSTOMER_ADDRESS = "customer_address"
    CUSTOMER_CITY = "customer_city"
    CUSTOMER_COUNTRY = "customer_country"
    CUSTOMER_POSTAL_CODE = "customer_postal_code"
    CUSTOMER_TAX_ID = "customer_tax_id"
    CUSTOMER_REGISTRATION_NUMBER = "customer_registration_number"
    CUSTOMER_STREET = "customer_street"
    CUSTOMER_STREET_NUMBER = "customer_street_number"

    # Invoice related
    INVOICE_NUMBER = "invoice_number"
    INVOICE_SERIES = "invoice_series"
    INVOICE_DATE = "invoice_date"
    INVOICE_DUE_DATE = "invoice_due_date"
    INVOICE_CUSTOMER_ID = "invoice_customer_id"
    INVOICE_STATUS = "invoice_status"
    INVOICE_PAYMENT_TERMS = "invoice_payment_terms"
    INVOICE_PAYMENT_METHOD = "invoice_payment_method"
    INVOICE_NOTES = "invoice_notes"
    INVOICE_BASE_CURRENCY = "invoice_base_currency"
    INVOICE_CURRENCY = "invoice_currency"
    INVOICE_SUBTOTAL = "invoice_subtotal"
    INVOICE_TAX_TOTAL = "invoice_tax_total"
    INVOICE_TOTAL_AMOUNT = "invoice_total_amount"

    # Order/quantity related
    QUANTITY = "quantity"
    UNIT_OF_MEASURE = "unit_of_measure"
    UNIT_PRICE = "unit_price"
    TOTAL_PRICE = "total_price"
    TAX_RATE = "tax_rate"
    TAX_AMOUNT = "tax_amount"

    # Generic
    NAME = "name"
    DESCRIPTION = "description"
    PRICE = "price"
    CURRENCY = "currency"
    CODE = "code"
    ID = "id"
    REFERENCE = "reference"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["SemanticType"]:
        """Return the member for ``value`` or None when it is not a known tag."""
        if not value:
            return None
        try:
            return cls(value.strip().lower())
        except ValueError:
            return None


PRICE_TYPES = (SemanticType.PRODUCT_PRICE, SemanticType.UNIT_PRICE, SemanticType.PRICE)
