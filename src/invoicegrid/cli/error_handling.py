"""CLI error handling helpers."""

import click

from invoicegrid.domain.errors import DomainError


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, DomainError) and error.field:
        click.echo(f"  field: {error.field}", err=True)
    ctx.exit(1)
