"""Shared domain error messages and error types."""

from typing import Any, Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling. ``kind`` is a stable,
    machine-readable identifier for callers that serialize errors.
    """

    kind = "domain"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        """Return a structured representation safe to show to users."""
        data: dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.field is not None:
            data["field"] = self.field
        return data


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""

    kind = "validation"


class NotFoundError(DomainError):
    """Requested tenant, database, table, series or row does not exist."""

    kind = "not_found"


class SchemaError(DomainError):
    """Invoice tables lack required semantic columns after self-healing."""

    kind = "schema"


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or lost allocation races."""

    kind = "conflict"


class StorageError(DomainError):
    """Underlying row store unavailable or transaction aborted."""

    kind = "storage"


STORAGE_RETRY_MESSAGE = "Storage is temporarily unavailable, please try again"


def tenant_not_found(tenant_id: int) -> str:
    """Return message for missing tenant."""
    return f"Tenant {tenant_id} not found"


def database_not_found(tenant_id: int, database_id: Optional[int] = None) -> str:
    """Return message for missing database."""
    if database_id is None:
        return f"No default database found for tenant {tenant_id}"
    return f"Database {database_id} not found for tenant {tenant_id}"


def table_not_found(name: str) -> str:
    """Return message for missing table by name."""
    return f"Table '{name}' not found"


def row_not_found(row_id: int, table_name: Optional[str] = None) -> str:
    """Return message for missing row."""
    if table_name:
        return f"Row {row_id} not found in table '{table_name}'"
    return f"Row {row_id} not found"


def series_not_found(series: str) -> str:
    """Return message for missing invoice series."""
    return f"Invoice series '{series}' not found"


def duplicate_series(series: str) -> str:
    """Return message for duplicate invoice series name."""
    return f"Series \"{series}\" already exists"


def series_in_use(series: str, invoice_count: int) -> str:
    """Return message when a series is still referenced by invoices."""
    return (
        f"Cannot delete series '{series}': it is used by "
        f"{invoice_count} invoice{'s' if invoice_count != 1 else ''}"
    )


def allocation_conflict(series: str, attempts: int) -> str:
    """Return message when number allocation keeps losing races."""
    return f"Could not allocate a number for series '{series}' after {attempts} attempts"


def missing_semantic_columns(table_name: str, missing: list[str]) -> str:
    """Return message for a table that lacks required semantic columns."""
    return f"Table '{table_name}' is missing required columns: {', '.join(missing)}"
