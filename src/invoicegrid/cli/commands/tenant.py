"""Tenant management commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.catalog import CatalogService
from invoicegrid.domain.errors import DomainError


@click.group()
def tenant_group():
    """Manage tenants."""
    pass


@tenant_group.command("create")
@click.argument("name", metavar="TENANT_NAME")
@click.option("--currency", default="USD", show_default=True, help="Default currency (3-letter code)")
@click.option("--series-prefix", default="INV", show_default=True, help="Default invoice series and prefix")
@click.option("--include-year/--no-include-year", default=True, show_default=True, help="Put the year in invoice numbers")
@click.option("--start-number", type=int, default=1, show_default=True, help="First invoice number of a new series")
@click.pass_context
def create_tenant(
    ctx, name: str, currency: str, series_prefix: str, include_year: bool, start_number: int
) -> None:
    """Create a tenant with a default database.

    Examples:
        invoicegrid tenant create "Acme"
        invoicegrid tenant create "Acme EU" --currency EUR --series-prefix FAC --no-include-year
    """
    service = CatalogService(ctx.obj["store"])
    try:
        tenant = service.create_tenant(
            name=name,
            default_currency=currency,
            invoice_series_prefix=series_prefix,
            invoice_include_year=include_year,
            invoice_start_number=start_number,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created tenant '{tenant.name}' (ID: {tenant.id})")


@tenant_group.command("list")
@click.pass_context
def list_tenants(ctx) -> None:
    """List all tenants."""
    tenants = ctx.obj["store"].list_tenants()
    if not tenants:
        click.echo("No tenants found.")
        return

    click.echo("\nTenants:")
    click.echo("-" * 60)
    for t in tenants:
        year = "with year" if t.invoice_include_year else "no year"
        click.echo(f"ID: {t.id:3d} | {t.name:20s} | {t.default_currency} | {t.invoice_series_prefix} ({year})")


def register_commands(cli):
    """Register tenant commands with main CLI."""
    cli.add_command(tenant_group, name="tenant")
