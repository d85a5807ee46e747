"""Invoice schema commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.errors import DomainError
from invoicegrid.domain.invoice_schema import InvoiceSchemaService


@click.group()
def schema_group():
    """Manage the invoice tables."""
    pass


@schema_group.command("ensure")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")
@click.pass_context
def ensure_schema(ctx, tenant_id: int, database_id: int | None) -> None:
    """Create or repair the customers, invoices and invoice_items tables.

    Running it again on a complete schema changes nothing.
    """
    service = InvoiceSchemaService(ctx.obj["store"])
    try:
        tables = service.ensure_schema(tenant_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    for table in (tables.customers, tables.invoices, tables.invoice_items):
        click.echo(f"{table.name:15s} (ID: {table.id}) - {len(table.columns)} columns")


def register_commands(cli):
    """Register schema commands with main CLI."""
    cli.add_command(schema_group, name="schema")
