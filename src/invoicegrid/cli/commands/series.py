"""Invoice series commands."""

import click

from invoicegrid.cli.error_handling import handle_domain_error
from invoicegrid.domain.errors import DomainError
from invoicegrid.domain.series import SeriesService


@click.group()
def series_group():
    """Manage invoice numbering series."""
    pass


def _tenant_options(fn):
    fn = click.option("--database", "database_id", type=int, help="Database ID (defaults to the tenant's default)")(fn)
    return click.option("--tenant", "tenant_id", type=int, required=True, help="Tenant ID")(fn)


@series_group.command("create")
@click.argument("name", metavar="SERIES")
@_tenant_options
@click.option("--prefix", help="Number prefix (defaults to the series name)")
@click.option("--suffix", default="", help="Text appended after the counter")
@click.option("--separator", default="-", show_default=True)
@click.option("--include-year", is_flag=True, help="Put the year in numbers")
@click.option("--include-month", is_flag=True, help="Put the month in numbers")
@click.option("--reset-yearly", is_flag=True, help="Restart at 1 every year")
@click.option("--start-number", type=int, default=1, show_default=True)
@click.pass_context
def create_series(
    ctx,
    name: str,
    tenant_id: int,
    database_id: int | None,
    prefix: str | None,
    suffix: str,
    separator: str,
    include_year: bool,
    include_month: bool,
    reset_yearly: bool,
    start_number: int,
) -> None:
    """Create a numbering series.

    Examples:
        invoicegrid series create PRO --tenant 1 --include-year --reset-yearly
    """
    service = SeriesService(ctx.obj["store"])
    try:
        record = service.create_series(
            tenant_id,
            name,
            prefix=prefix,
            suffix=suffix,
            separator=separator,
            include_year=include_year,
            include_month=include_month,
            reset_yearly=reset_yearly,
            start_number=start_number,
            database_id=database_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Created series '{record.series}' (ID: {record.id})")


@series_group.command("list")
@_tenant_options
@click.pass_context
def list_series(ctx, tenant_id: int, database_id: int | None) -> None:
    """List numbering series."""
    service = SeriesService(ctx.obj["store"])
    try:
        records = service.list_series(tenant_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    if not records:
        click.echo("No series found.")
        return
    for r in records:
        flags = []
        if r.include_year:
            flags.append("year")
        if r.include_month:
            flags.append("month")
        if r.reset_yearly:
            flags.append("yearly reset")
        click.echo(f"{r.series:10s} | prefix: {r.prefix or r.series:10s} | current: {r.current_number:6d} | {', '.join(flags)}")


@series_group.command("update")
@click.argument("name", metavar="SERIES")
@_tenant_options
@click.option("--prefix")
@click.option("--suffix")
@click.option("--separator")
@click.option("--include-year/--no-include-year", default=None)
@click.option("--include-month/--no-include-month", default=None)
@click.option("--reset-yearly/--no-reset-yearly", default=None)
@click.option("--start-number", type=int, help="Next number to hand out")
@click.pass_context
def update_series(
    ctx,
    name: str,
    tenant_id: int,
    database_id: int | None,
    prefix: str | None,
    suffix: str | None,
    separator: str | None,
    include_year: bool | None,
    include_month: bool | None,
    reset_yearly: bool | None,
    start_number: int | None,
) -> None:
    """Update a numbering series. Only the given options change."""
    service = SeriesService(ctx.obj["store"])
    try:
        record = service.update_series(
            tenant_id,
            name,
            prefix=prefix,
            suffix=suffix,
            separator=separator,
            include_year=include_year,
            include_month=include_month,
            reset_yearly=reset_yearly,
            start_number=start_number,
            database_id=database_id,
        )
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated series '{record.series}'")


@series_group.command("delete")
@click.argument("name", metavar="SERIES")
@_tenant_options
@click.pass_context
def delete_series(ctx, name: str, tenant_id: int, database_id: int | None) -> None:
    """Delete a series that no invoice uses."""
    service = SeriesService(ctx.obj["store"])
    try:
        service.delete_series(tenant_id, name, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Deleted series '{name}'")


@series_group.command("next")
@click.argument("name", metavar="SERIES", required=False)
@_tenant_options
@click.pass_context
def next_number(ctx, name: str | None, tenant_id: int, database_id: int | None) -> None:
    """Show the next number of a series without using it."""
    service = SeriesService(ctx.obj["store"])
    try:
        number = service.next_number(tenant_id, name, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(number.number)


@series_group.command("stats")
@_tenant_options
@click.pass_context
def numbering_stats(ctx, tenant_id: int, database_id: int | None) -> None:
    """Show invoice numbering statistics."""
    service = SeriesService(ctx.obj["store"])
    try:
        stats = service.numbering_stats(tenant_id, database_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Total invoices: {stats['total_invoices']}")
    click.echo(f"Last number:    {stats['last_invoice_number'] or '-'}")
    click.echo(f"Next number:    {stats['next_number']}")
    for label, key in (("By series", "by_series"), ("By year", "by_year"), ("By month", "by_month")):
        if stats[key]:
            click.echo(f"\n{label}:")
            for name, count in stats[key].items():
                click.echo(f"  {name:10s} {count:5d}")


def register_commands(cli):
    """Register series commands with main CLI."""
    cli.add_command(series_group, name="series")
