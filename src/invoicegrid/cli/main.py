"""Main CLI entry point."""

import click

from invoicegrid.database.factories import create_sqlite_store
from invoicegrid.logging import setup_logging

# Import and register all commands at module level
from invoicegrid.cli.commands import (
    database,
    invoice,
    row,
    schema,
    series,
    table,
    tenant,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides INVOICEGRID_DB_PATH environment variable)",
    envvar="INVOICEGRID_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="INVOICEGRID_LOG_LEVEL",
    help="Minimum log level written to stderr",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    envvar="INVOICEGRID_LOG_FILE",
    help="Also write logs to this rotating file",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str, log_file: str | None):
    """invoicegrid - Invoices over tenant-defined tables.

    Store customers and products in your own tables, tag their columns with
    semantic types and issue numbered invoices with computed totals.
    """
    ctx.ensure_object(dict)
    setup_logging(log_level, log_file)

    # Open the store only when actually running a command (not for --help)
    if ctx.invoked_subcommand is not None:
        store = create_sqlite_store(database_path=db_path)
        store.connect()
        ctx.obj["store"] = store
        ctx.call_on_close(store.disconnect)


# Register all commands
tenant.register_commands(cli)
database.register_commands(cli)
table.register_commands(cli)
row.register_commands(cli)
schema.register_commands(cli)
series.register_commands(cli)
invoice.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
