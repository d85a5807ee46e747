"""Tests for domain errors."""

import pytest

from invoicegrid.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    SchemaError,
    StorageError,
    ValidationError,
    series_in_use,
)


@pytest.mark.parametrize(
    "error_type, kind",
    [
        (ValidationError, "validation"),
        (NotFoundError, "not_found"),
        (SchemaError, "schema"),
        (ConflictError, "conflict"),
        (StorageError, "storage"),
    ],
)
def test_error_kinds(error_type, kind):
    """Each error category has a stable kind and stays a ValueError."""
    error = error_type("Something went wrong")

    assert isinstance(error, DomainError)
    assert isinstance(error, ValueError)
    assert error.to_dict() == {"kind": kind, "message": "Something went wrong"}


def test_error_field_is_serialized():
    """The offending field is included when known."""
    error = ValidationError("Bad currency", field="base_currency")
    assert error.to_dict()["field"] == "base_currency"
    assert str(error) == "Bad currency"


def test_series_in_use_message():
    """The message pluralizes the invoice count."""
    assert series_in_use("INV", 1).endswith("1 invoice")
    assert series_in_use("INV", 3).endswith("3 invoices")
