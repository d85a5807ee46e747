"""invoicegrid: invoice numbering and totals over a multi-tenant row store."""

__version__ = "0.1.0"


# Import main lazily to avoid circular dependencies
def __getattr__(name):
    if name == "main":
        from invoicegrid.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
