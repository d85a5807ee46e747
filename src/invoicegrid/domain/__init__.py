"""Domain layer for invoicegrid."""
