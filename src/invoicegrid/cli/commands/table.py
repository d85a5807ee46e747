"""Table and column commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.catalog import COLUMN_TYPES, CatalogService
from invoicegrid.domain.errors import DomainError
from invoicegrid.domain.semantic_resolver import validate_table_for_invoices


@click.group()
def table_group():
    """Manage tables and columns."""
    pass


@table_group.command("create")
@click.argument("name", metavar="TABLE_NAME")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")
@click.option("--description", help="Table description")
@click.pass_context
def create_table(ctx, name: str, tenant_id: int, database_id: int | None, description: str | None) -> None:
    """Create a table."""
    service = CatalogService(ctx.obj["store"])
    try:
        table = service.create_table(tenant_id, name, description=description, database_id=database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created table '{table.name}' (ID: {table.id})")


@table_group.command("add-column")
@click.argument("table_name", metavar="TABLE_NAME")
@click.argument("name", metavar="COLUMN_NAME")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")
@click.option("--type", "column_type", type=click.Choice(COLUMN_TYPES), default="string", show_default=True)
@click.option("--semantic-type", help="Semantic tag, e.g. product_price or currency")
@click.option("--required", is_flag=True, help="Rows must set this column")
@click.pass_context
def add_column(
    ctx,
    table_name: str,
    name: str,
    tenant_id: int,
    database_id: int | None,
    column_type: str,
    semantic_type: str | None,
    required: bool,
) -> None:
    """Add a column to a table.

    Examples:
        invoicegrid table add-column products price --tenant 1 --type number --semantic-type product_price
    """
    service = CatalogService(ctx.obj["store"])
    try:
        column = service.add_column(
            tenant_id,
            table_name,
            name,
            type=column_type,
            semantic_type=semantic_type,
            required=required,
            database_id=database_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    tag = f" [{column.semantic_type}]" if column.semantic_type else ""
    click.echo(f"Added column '{column.name}' ({column.type}){tag} to '{table_name}'")


@table_group.command("show")
@click.argument("table_name", metavar="TABLE_NAME")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")
@click.pass_context
def show_table(ctx, table_name: str, tenant_id: int, database_id: int | None) -> None:
    """Show the columns of a table and whether it can be invoiced from."""
    service = CatalogService(ctx.obj["store"])
    try:
        table = service.get_table(tenant_id, table_name, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nTable '{table.name}' (ID: {table.id})")
    click.echo("-" * 60)
    for column in table.columns:
        tag = column.semantic_type or "-"
        flags = " required" if column.required else ""
        click.echo(f"{column.name:25s} | {column.type:9s} | {tag}{flags}")

    validation = validate_table_for_invoices(table.columns, table.name)
    click.echo(f"\nUsable as product table: {'yes' if validation.is_valid else 'no'}")
    for reason in validation.reasons:
        click.echo(f"  - {reason}")
    for warning in validation.warnings:
        click.echo(f"  ! {warning}")


def register_commands(cli):
    """Register table commands with main CLI."""
    cli.add_command(table_group, name="table")
