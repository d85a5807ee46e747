#!/usr/bin/env python3
"""Migration script to bring invoice storage up to date.

This migration:
- adds the lastYear column to invoice_series when an older database lacks
  it (needed for yearly counter resets)
- creates or repairs the protected customers, invoices and invoice_items
  tables of every tenant database

It is safe to run repeatedly.

Usage:
    python migrations/ensure_invoice_schema.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import invoicegrid modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import inspect, text
from invoicegrid.database.factories import create_sqlite_store
from invoicegrid.domain.invoice_schema import InvoiceSchemaService


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def migrate_database(database_path: str | None = None) -> None:
    """Add missing series columns and heal invoice tables for all tenants.

    Args:
        database_path: Path to database file. If None, uses default location.
    """
    store = create_sqlite_store(database_path=database_path)
    store.connect()
    engine = store.session_factory.kw["bind"]

    try:
        if column_exists(engine, "invoice_series", "lastYear"):
            print("invoice_series.lastYear already present")
        else:
            with engine.begin() as conn:
                conn.execute(text('ALTER TABLE invoice_series ADD COLUMN "lastYear" INTEGER'))
            print("  Added column: invoice_series.lastYear")

        service = InvoiceSchemaService(store)
        for tenant in store.list_tenants():
            for database in store.list_databases(tenant.id):
                tables = service.ensure_schema(tenant.id, database.id)
                print(
                    f"  Tenant {tenant.id} '{tenant.name}', database '{database.name}': "
                    f"{', '.join(t.name for t in (tables.customers, tables.invoices, tables.invoice_items))}"
                )

        print("Migration completed successfully!")
    finally:
        store.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(description="Bring invoice tables and series columns up to date")
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides INVOICEGRID_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
