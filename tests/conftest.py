"""Shared pytest fixtures for invoicegrid tests."""

import os
import sys
import tempfile
from datetime import date, timedelta

import pytest
from loguru import logger

from invoicegrid.database.factories import create_sqlite_store
from invoicegrid.domain.catalog import CatalogService
from invoicegrid.domain.entities import InvoiceProductRequest, InvoiceRequest
from invoicegrid.domain.invoice import InvoiceAssembler
from invoicegrid.domain.invoice_schema import InvoiceSchemaService
from invoicegrid.domain.series import SeriesAllocator, SeriesService


@pytest.fixture
def temp_store():
    """Create a temporary SQLite row store for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()

    yield store

    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def catalog_service(temp_store):
    """Create a CatalogService with a temporary store."""
    return CatalogService(temp_store)


@pytest.fixture
def schema_service(temp_store):
    """Create an InvoiceSchemaService with a temporary store."""
    return InvoiceSchemaService(temp_store)


@pytest.fixture
def series_service(temp_store):
    """Create a SeriesService with a temporary store."""
    return SeriesService(temp_store)


@pytest.fixture
def allocator(temp_store):
    """Create a SeriesAllocator with a temporary store."""
    return SeriesAllocator(temp_store)


@pytest.fixture
def assembler(temp_store):
    """Create an InvoiceAssembler with a temporary store."""
    return InvoiceAssembler(temp_store)


@pytest.fixture
def sample_tenant(catalog_service):
    """Create a tenant numbering invoices as INV-<year>-NNNN."""
    return catalog_service.create_tenant(name="Acme", default_currency="USD")


@pytest.fixture
def default_database(temp_store, sample_tenant):
    """Return the default database of the sample tenant."""
    return temp_store.get_default_database(sample_tenant.id)


@pytest.fixture
def product_table(catalog_service, sample_tenant):
    """Create a products table with semantic columns and two products.

    Row 1: Widget, 10.00 USD, 20% VAT
    Row 2: Gadget, 5.00 USD, 0% VAT
    """
    tenant_id = sample_tenant.id
    catalog_service.create_table(tenant_id, "products", description="Things we sell")
    catalog_service.add_column(tenant_id, "products", "name", semantic_type="product_name")
    catalog_service.add_column(tenant_id, "products", "sku", semantic_type="product_sku")
    catalog_service.add_column(tenant_id, "products", "price", type="number", semantic_type="product_price")
    catalog_service.add_column(tenant_id, "products", "currency", semantic_type="currency")
    catalog_service.add_column(tenant_id, "products", "vat", type="number", semantic_type="product_vat")

    catalog_service.add_row(
        tenant_id, "products", {"name": "Widget", "sku": "W-1", "price": 10, "currency": "USD", "vat": 20}
    )
    catalog_service.add_row(
        tenant_id, "products", {"name": "Gadget", "sku": "G-1", "price": 5, "currency": "USD", "vat": 0}
    )
    return catalog_service.get_table(tenant_id, "products")


@pytest.fixture
def product_rows(temp_store, product_table):
    """Return the two product rows in insertion order."""
    return temp_store.find_rows(product_table.id)


@pytest.fixture
def sample_customer(catalog_service, schema_service, sample_tenant):
    """Create the invoice tables and one customer row."""
    schema_service.ensure_schema(sample_tenant.id)
    return catalog_service.add_row(
        sample_tenant.id,
        "customers",
        {"customer_name": "Jane Doe", "customer_email": "jane@example.com", "customer_city": "Lisbon"},
    )


@pytest.fixture
def invoice_request(sample_customer, product_rows):
    """Build a request for both sample products (2 x Widget, 1 x Gadget)."""
    widget, gadget = product_rows
    return InvoiceRequest(
        customer_id=sample_customer.id,
        base_currency="USD",
        due_date=date.today() + timedelta(days=30),
        payment_method="bank transfer",
        products=(
            InvoiceProductRequest(product_ref_table="products", product_ref_id=widget.id, quantity=2),
            InvoiceProductRequest(product_ref_table="products", product_ref_id=gadget.id, quantity=1),
        ),
    )


@pytest.fixture
def log_messages():
    """Collect loguru messages of level WARNING and above."""
    messages: list[str] = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop sinks bound to CLI runner streams once a test is done."""
    yield
    logger.remove()
    logger.add(sys.stderr, level="WARNING")
