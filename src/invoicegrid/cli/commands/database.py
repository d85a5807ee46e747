"""Tenant database commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.catalog import CatalogService
from invoicegrid.domain.errors import DomainError


@click.group()
def database_group():
    """Manage tenant databases."""
    pass


@database_group.command("create")
@click.argument("name", metavar="DATABASE_NAME")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.option("--default", "is_default", is_flag=True, help="Make it the tenant's default database")
@click.pass_context
def create_database(ctx, name: str, tenant_id: int, is_default: bool) -> None:
    """Create a database for a tenant."""
    service = CatalogService(ctx.obj["store"])
    try:
        database = service.create_database(tenant_id, name, is_default=is_default)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created database '{database.name}' (ID: {database.id})")


@database_group.command("list")
@click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")
@click.pass_context
def list_databases(ctx, tenant_id: int) -> None:
    """List the databases of a tenant."""
    databases = ctx.obj["store"].list_databases(tenant_id)
    if not databases:
        click.echo("No databases found.")
        return
    for d in databases:
        marker = " (default)" if d.is_default else ""
        click.echo(f"ID: {d.id:3d} | {d.name}{marker}")


def register_commands(cli):
    """Register database commands with main CLI."""
    cli.add_command(database_group, name="database")
