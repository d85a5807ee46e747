"""Invoice commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.entities import InvoiceProductRequest, InvoiceRequest
from invoicegrid.domain.errors import DomainError
from invoicegrid.domain.invoice import VALID_STATUSES, InvoiceAssembler
from invoicegrid.utils.date_parser import parse_date


def parse_item(spec: str) -> InvoiceProductRequest:
    """Parse an item option of the form TABLE:ID:QTY[:PRICE[:CURRENCY]].

    Raises:
        ValueError: If the item cannot be parsed
    """
    parts = spec.split(":")
    if len(parts) < 3 or len(parts) > 5:
        raise ValueError(f"Item '{spec}' must look like TABLE:ID:QTY[:PRICE[:CURRENCY]]")
    try:
        product_id = int(parts[1])
    except ValueError:
        raise ValueError(f"Item '{spec}' has a non-numeric product ID")
    price = parts[3] if len(parts) > 3 and parts[3] != "" else None
    currency = parts[4].upper() if len(parts) > 4 and parts[4] != "" else None
    return InvoiceProductRequest(
        product_ref_table=parts[0],
        product_ref_id=product_id,
        quantity=parts[2],
        price=price,
        currency=currency,
    )


@click.group()
def invoice_group():
    """Create and manage invoices."""
    pass


def _tenant_options(fn):
    fn = click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")(fn)
    return click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")(fn)


@invoice_group.command("create")
@_tenant_options
@click.option("--customer", "customer_id", type=int, required=True, help="Row ID in the customers table")
@click.option("--item", "items", multiple=True, required=True, metavar="TABLE:ID:QTY[:PRICE[:CURRENCY]]")
@click.option("--due", "due", required=True, help="Due date (YYYY-MM-DD or relative like 'in 30 days')")
@click.option("--payment-method", required=True, help="Payment method, e.g. 'bank transfer'")
@click.option("--currency", "base_currency", help="Invoice currency (defaults to the tenant's)")
@click.option("--terms", "payment_terms", help="Payment terms")
@click.option("--notes", help="Notes")
@click.option("--status", type=click.Choice(VALID_STATUSES), default="draft", show_default=True)
@click.option("--series", "invoice_series", help="Numbering series (defaults to the tenant's)")
@click.pass_context
def create_invoice(
    ctx,
    tenant_id: int,
    database_id: int | None,
    customer_id: int,
    items: tuple[str, ...],
    due: str,
    payment_method: str,
    base_currency: str | None,
    payment_terms: str | None,
    notes: str | None,
    status: str,
    invoice_series: str | None,
) -> None:
    """Create an invoice.

    Examples:
        invoicegrid invoice create --tenant 1 --customer 1 --item products:1:2 \\
            --item products:2:1:5:EUR --due "in 30 days" --payment-method transfer
    """
    store = ctx.obj["store"]
    try:
        products = tuple(parse_item(spec) for spec in items)
        due_date = parse_date(due)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)
        return

    if base_currency is None:
        tenant = store.get_tenant(tenant_id)
        base_currency = tenant.default_currency if tenant is not None else "USD"

    request = InvoiceRequest(
        customer_id=customer_id,
        base_currency=base_currency,
        due_date=due_date,
        payment_method=payment_method,
        products=products,
        payment_terms=payment_terms,
        notes=notes,
        status=status,
        invoice_series=invoice_series,
    )
    try:
        created = InvoiceAssembler(store).create_invoice(tenant_id, request, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Created invoice {created.invoice_number} (ID: {created.id})")
    click.echo(f"  Items:    {created.items_count}")
    click.echo(f"  Subtotal: {created.subtotal}")
    click.echo(f"  VAT:      {created.tax_total}")
    click.echo(f"  Total:    {created.total_amount} {request.base_currency.upper()}")


@invoice_group.command("show")
@click.argument("invoice_id", type=int)
@_tenant_options
@click.pass_context
def show_invoice(ctx, invoice_id: int, tenant_id: int, database_id: int | None) -> None:
    """Show an invoice with its items."""
    try:
        details = InvoiceAssembler(ctx.obj["store"]).get_invoice(tenant_id, invoice_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    fields = details.fields
    click.echo(f"\nInvoice {fields.get('invoice_number')} (ID: {details.id})")
    click.echo("-" * 60)
    for key in ("date", "due_date", "status", "payment_method", "payment_terms", "notes"):
        if fields.get(key) is not None:
            click.echo(f"{key:15s} {fields[key]}")

    click.echo("\nItems:")
    for item in details.items:
        name = item.get("product_name") or item.get("description") or f"{item.get('product_ref_table')}#{item.get('product_ref_id')}"
        click.echo(
            f"  {name:30s} {item.get('quantity')} x {item.get('price')} {item.get('currency')}"
            f" (VAT {item.get('product_vat')}%)"
        )

    totals = details.totals
    click.echo(f"\nSubtotal: {totals.subtotal}")
    click.echo(f"VAT:      {totals.vat_total}")
    click.echo(f"Total:    {totals.grand_total} {totals.base_currency}")
    if totals.is_mixed_currency:
        for currency, amount in sorted(totals.totals_by_currency.items()):
            click.echo(f"  {currency}: {amount}")


@invoice_group.command("list")
@_tenant_options
@click.pass_context
def list_invoices(ctx, tenant_id: int, database_id: int | None) -> None:
    """List invoices."""
    try:
        invoices = InvoiceAssembler(ctx.obj["store"]).list_invoices(tenant_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if not invoices:
        click.echo("No invoices found.")
        return
    for inv in invoices:
        total = inv["total_amount"] if inv["total_amount"] is not None else "-"
        click.echo(
            f"ID: {inv['id']:4d} | {inv['invoice_number'] or '-':16s} | {inv['date'] or '-':10s} | "
            f"{inv['status'] or '-':9s} | {total} {inv['base_currency'] or ''}"
        )


@invoice_group.command("status")
@click.argument("invoice_id", type=int)
@click.argument("status", type=click.Choice(VALID_STATUSES))
@_tenant_options
@click.pass_context
def set_status(ctx, invoice_id: int, status: str, tenant_id: int, database_id: int | None) -> None:
    """Change the status of an invoice."""
    try:
        InvoiceAssembler(ctx.obj["store"]).update_status(tenant_id, invoice_id, status, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Invoice {invoice_id} is now {status}")


@invoice_group.command("delete")
@click.argument("invoice_id", type=int)
@_tenant_options
@click.pass_context
def delete_invoice(ctx, invoice_id: int, tenant_id: int, database_id: int | None) -> None:
    """Delete an invoice and its items."""
    try:
        deleted = InvoiceAssembler(ctx.obj["store"]).delete_invoice(tenant_id, invoice_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted invoice {invoice_id} and {deleted} item{'s' if deleted != 1 else ''}")


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
