"""CLI interface for invoicegrid."""
