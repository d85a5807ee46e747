"""CLI commands for invoicegrid."""
