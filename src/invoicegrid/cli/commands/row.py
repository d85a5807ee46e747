"""Row commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.catalog import CatalogService
from invoicegrid.domain.errors import DomainError


@click.group()
def row_group():
    """Manage table rows."""
    pass


@row_group.command("add")
@click.argument("table_name", metavar="TABLE_NAME")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")
@click.option("--set", "assignments", multiple=True, metavar="COLUMN=VALUE", help="Cell value (repeatable)")
@click.pass_context
def add_row(ctx, table_name: str, tenant_id: int, database_id: int | None, assignments: tuple[str, ...]) -> None:
    """Add a row to a table.

    Examples:
        invoicegrid row add products --tenant 1 --set name=Widget --set price=10 --set currency=USD
    """
    values = {}
    for assignment in assignments:
        if "=" not in assignment:
            click.echo(f"Error: Expected COLUMN=VALUE, got '{assignment}'", err=True)
            ctx.exit(1)
        key, value = assignment.split("=", 1)
        values[key.strip()] = value

    service = CatalogService(ctx.obj["store"])
    try:
        row = service.add_row(tenant_id, table_name, values, database_id=database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Added row {row.id} to '{table_name}'")


def register_commands(cli):
    """Register row commands with main CLI."""
    cli.add_command(row_group, name="row")
