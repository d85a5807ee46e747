"""Integration tests for end-to-end workflows."""

import re
from datetime import date

from invoicegrid.cli.main import cli


def _run(cli_runner, store, *args):
    result = cli_runner.invoke(cli, ["--db-path", store.database_path, *args])
    assert result.exit_code == 0, result.output
    return result


def _row_id(output: str) -> str:
    # "Added row 3 to 'products'"
    return re.search(r"Added row (\d+)", output).group(1)


def _invoice_id(output: str) -> str:
    # "Created invoice INV-2024-0001 (ID: 7)"
    return re.search(r"\(ID: (\d+)\)", output).group(1)


def test_full_workflow(cli_runner, temp_store):
    """Test complete workflow: tenant → schema → products → customer → invoices → stats."""
    year = date.today().year

    # Step 1: Tenant with its default database
    result = _run(cli_runner, temp_store, "tenant", "create", "Acme")
    assert "(ID: 1)" in result.output
    tenant = "1"

    # Step 2: Invoice tables
    result = _run(cli_runner, temp_store, "schema", "ensure", "--tenant", tenant)
    assert "customers" in result.output

    # Step 3: Product table with semantic columns
    _run(cli_runner, temp_store, "table", "create", "products", "--tenant", tenant)
    for name, column_type, tag in (
        ("name", "string", "product_name"),
        ("price", "number", "product_price"),
        ("currency", "string", "currency"),
        ("vat", "number", "product_vat"),
    ):
        _run(
            cli_runner,
            temp_store,
            "table",
            "add-column",
            "products",
            name,
            "--tenant",
            tenant,
            "--type",
            column_type,
            "--semantic-type",
            tag,
        )

    result = _run(
        cli_runner,
        temp_store,
        "row",
        "add",
        "products",
        "--tenant",
        tenant,
        "--set",
        "name=Widget",
        "--set",
        "price=10",
        "--set",
        "currency=USD",
        "--set",
        "vat=20",
    )
    widget = _row_id(result.output)

    # Step 4: Customer
    result = _run(
        cli_runner, temp_store, "row", "add", "customers", "--tenant", tenant, "--set", "customer_name=Jane Doe"
    )
    customer = _row_id(result.output)

    # Step 5: Two invoices get consecutive numbers
    invoice_args = (
        "invoice",
        "create",
        "--tenant",
        tenant,
        "--customer",
        customer,
        "--item",
        f"products:{widget}:2",
        "--due",
        "in 30 days",
        "--payment-method",
        "bank transfer",
    )
    first = _run(cli_runner, temp_store, *invoice_args)
    assert f"INV-{year}-0001" in first.output
    assert "Total:    24.00 USD" in first.output

    second = _run(cli_runner, temp_store, *invoice_args)
    assert f"INV-{year}-0002" in second.output
    first_id = _invoice_id(first.output)

    # Step 6: Read back
    result = _run(cli_runner, temp_store, "invoice", "show", first_id, "--tenant", tenant)
    assert "Widget" in result.output
    assert "Total:    24.00 USD" in result.output

    result = _run(cli_runner, temp_store, "invoice", "list", "--tenant", tenant)
    assert f"INV-{year}-0001" in result.output
    assert f"INV-{year}-0002" in result.output

    # Step 7: Status change
    result = _run(cli_runner, temp_store, "invoice", "status", first_id, "paid", "--tenant", tenant)
    assert "now paid" in result.output

    # Step 8: Numbering stats and next number
    result = _run(cli_runner, temp_store, "series", "stats", "--tenant", tenant)
    assert "Total invoices: 2" in result.output
    assert f"Next number:    INV-{year}-0003" in result.output

    # Step 9: A series in use cannot be deleted
    result = cli_runner.invoke(
        cli, ["--db-path", temp_store.database_path, "series", "delete", "INV", "--tenant", tenant]
    )
    assert result.exit_code == 1
    assert "used by 2 invoices" in result.output

    # Step 10: Deleting an invoice removes its items
    result = _run(cli_runner, temp_store, "invoice", "delete", first_id, "--tenant", tenant)
    assert "and 1 item" in result.output
    result = _run(cli_runner, temp_store, "invoice", "list", "--tenant", tenant)
    assert f"INV-{year}-0001" not in result.output


def test_request_price_overrides_product(cli_runner, temp_store, sample_tenant, sample_customer, product_rows):
    """A price and currency given on the item replace the product's."""
    widget = product_rows[0]

    result = _run(
        cli_runner,
        temp_store,
        "invoice",
        "create",
        "--tenant",
        str(sample_tenant.id),
        "--customer",
        str(sample_customer.id),
        "--item",
        f"products:{widget.id}:1:50",
        "--due",
        "2099-01-31",
        "--payment-method",
        "cash",
    )

    # 50 + 20% VAT from the product row
    assert "Total:    60.00 USD" in result.output
