"""Utility functions for invoicegrid."""

from invoicegrid.utils.date_parser import parse_date
from invoicegrid.utils.amount_parser import parse_amount, to_decimal, coerce_amount, to_json_number
from invoicegrid.utils.cell_buffer import CellWriteBuffer

__all__ = ["parse_date", "parse_amount", "to_decimal", "coerce_amount", "to_json_number", "CellWriteBuffer"]
