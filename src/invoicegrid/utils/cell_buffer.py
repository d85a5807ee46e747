"""Buffered cell writes with last-write-wins de-duplication."""

from typing import Any, Iterator

from invoicegrid.domain.entities import CellWrite


class CellWriteBuffer:
    """Collect cell writes keyed by (row_id, column_id).

    A later write to the same cell replaces the earlier value but keeps its
    original position, so flushing writes each cell once in first-seen order.
    """

    def __init__(self):
        self._writes: dict[tuple[int, int], Any] = {}

    def set(self, row_id: int, column_id: int, value: Any) -> None:
        """Record a value for a cell."""
        self._writes[(row_id, column_id)] = value

    def get(self, row_id: int, column_id: int, default: Any = None) -> Any:
        """Return the pending value for a cell."""
        return self._writes.get((row_id, column_id), default)

    def __len__(self) -> int:
        return len(self._writes)

    def __iter__(self) -> Iterator[CellWrite]:
        for (row_id, column_id), value in self._writes.items():
            yield CellWrite(row_id=row_id, column_id=column_id, value=value)

    def writes(self) -> list[CellWrite]:
        """Return the pending writes in first-seen order."""
        return list(self)

    def flush(self, store) -> int:
        """Write all pending cells through ``store.create_cells`` and clear the buffer.

        Returns:
            Number of cells written
        """
        writes = self.writes()
        written = store.create_cells(writes) if writes else 0
        self._writes.clear()
        return written
