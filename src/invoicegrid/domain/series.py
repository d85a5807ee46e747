"""Invoice number allocation and series administration."""

from collections import Counter
from datetime import date
from typing import Any, Optional

from loguru import logger

from invoicegrid.database.base import RowStore
from invoicegrid.domain.catalog import resolve_database
from invoicegrid.domain.entities import InvoiceNumber, InvoiceSeries, SeriesConfig, Tenant
from invoicegrid.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    allocation_conflict,
    duplicate_series,
    series_in_use,
    series_not_found,
    tenant_not_found,
)
from invoicegrid.domain.invoice_schema import InvoiceSchemaService
from invoicegrid.domain.semantic_resolver import build_semantic_map
from invoicegrid.domain.semantic_types import SemanticType
from invoicegrid.utils.date_parser import stored_date

DEFAULT_MAX_RETRIES = 5


def format_invoice_number(
    counter: int,
    series: str,
    prefix: Optional[str] = None,
    suffix: str = "",
    separator: str = "-",
    include_year: bool = False,
    include_month: bool = False,
    on_date: Optional[date] = None,
    pad_width: int = 4,
) -> str:
    """Format an invoice number.

    The parts are the prefix (the series name when no prefix is set), the
    four-digit year, the two-digit month and the zero-padded counter, joined
    by ``separator``. The suffix is appended as is.

    Example: series "INV" with the year enabled in 2024 gives "INV-2024-0001".
    """
    on_date = on_date or date.today()
    parts = [prefix or series]
    if include_year:
        parts.append(f"{on_date.year:04d}")
    if include_month:
        parts.append(f"{on_date.month:02d}")
    parts.append(str(counter).zfill(pad_width))
    return separator.join(parts) + (suffix or "")


def _format_record(record: InvoiceSeries, counter: int, on_date: date, pad_width: int) -> str:
    return format_invoice_number(
        counter,
        series=record.series,
        prefix=record.prefix,
        suffix=record.suffix,
        separator=record.separator,
        include_year=record.include_year,
        include_month=record.include_month,
        on_date=on_date,
        pad_width=pad_width,
    )


def next_counter(record: InvoiceSeries, on_date: date) -> int:
    """Counter value the next allocation from ``record`` will produce."""
    if record.reset_yearly and record.last_year is not None and record.last_year != on_date.year:
        return 1
    return record.current_number + 1


def tenant_series_config(tenant: Tenant, series: Optional[str] = None) -> SeriesConfig:
    """Build the numbering configuration from tenant settings."""
    return SeriesConfig(
        series=series or tenant.invoice_series_prefix,
        prefix=None if series else tenant.invoice_series_prefix,
        include_year=tenant.invoice_include_year,
        start_number=tenant.invoice_start_number,
    )


class SeriesAllocator:
    """Hands out unique, gap-free invoice numbers per tenant, database and series.

    The counter is advanced with a compare-and-set update. A lost race
    re-reads the series and tries again, at most ``max_retries`` times.
    """

    def __init__(self, store: RowStore, max_retries: int = DEFAULT_MAX_RETRIES):
        """Initialize series allocator.

        Args:
            store: Row store instance
            max_retries: Attempts before giving up with ConflictError
        """
        self.store = store
        self.max_retries = max_retries

    def allocate(
        self,
        tenant_id: int,
        database_id: int,
        config: Optional[SeriesConfig] = None,
        on_date: Optional[date] = None,
    ) -> InvoiceNumber:
        """Allocate the next number of a series, creating the series on first use.

        Args:
            tenant_id: Tenant ID
            database_id: Database ID
            config: Numbering configuration, used as is only when the series is new
            on_date: Allocation date, defaults to today

        Returns:
            InvoiceNumber with the formatted number and its counter

        Raises:
            ConflictError: If every attempt lost a race
            StorageError: If the store fails
        """
        config = config or SeriesConfig()
        on_date = on_date or date.today()

        for attempt in range(1, self.max_retries + 1):
            number = self.store.run_transaction(
                lambda store: self._try_allocate(store, tenant_id, database_id, config, on_date)
            )
            if number is not None:
                logger.debug("Allocated {} (attempt {})", number.number, attempt)
                return number
            logger.debug("Lost allocation race for series '{}', attempt {}", config.series, attempt)

        logger.warning("Giving up allocation for series '{}' after {} attempts", config.series, self.max_retries)
        raise ConflictError(allocation_conflict(config.series, self.max_retries))

    def _try_allocate(
        self,
        store: RowStore,
        tenant_id: int,
        database_id: int,
        config: SeriesConfig,
        on_date: date,
    ) -> Optional[InvoiceNumber]:
        record = store.find_series(tenant_id, database_id, config.series, for_update=True)
        if record is None:
            try:
                record = store.create_series(
                    tenant_id,
                    database_id,
                    config.series,
                    prefix=config.prefix or "",
                    suffix=config.suffix,
                    separator=config.separator,
                    include_year=config.include_year,
                    include_month=config.include_month,
                    reset_yearly=config.reset_yearly,
                    current_number=config.start_number - 1,
                )
            except ConflictError:
                # Another allocator created it first; re-read on the next attempt
                logger.debug("Series '{}' was created concurrently", config.series)
                return None
            logger.info("Created invoice series '{}' for tenant {}", config.series, tenant_id)

        counter = next_counter(record, on_date)
        if counter == 1 and record.current_number > 0:
            logger.info("Yearly reset of series '{}' for {}", record.series, on_date.year)
        if not store.compare_and_set_series_counter(record.id, record.current_number, counter, on_date.year):
            return None
        return InvoiceNumber(
            number=_format_record(record, counter, on_date, config.pad_width),
            series=record.series,
            counter=counter,
        )

    def preview(
        self,
        tenant_id: int,
        database_id: int,
        config: Optional[SeriesConfig] = None,
        on_date: Optional[date] = None,
    ) -> InvoiceNumber:
        """Return the number the next allocation would produce, without consuming it."""
        config = config or SeriesConfig()
        on_date = on_date or date.today()
        record = self.store.find_series(tenant_id, database_id, config.series)
        if record is None:
            counter = config.start_number
            number = format_invoice_number(
                counter,
                series=config.series,
                prefix=config.prefix,
                suffix=config.suffix,
                separator=config.separator,
                include_year=config.include_year,
                include_month=config.include_month,
                on_date=on_date,
                pad_width=config.pad_width,
            )
            return InvoiceNumber(number=number, series=config.series, counter=counter)
        counter = next_counter(record, on_date)
        return InvoiceNumber(
            number=_format_record(record, counter, on_date, config.pad_width),
            series=record.series,
            counter=counter,
        )


class SeriesService:
    """Service for managing invoice numbering series."""

    def __init__(self, store: RowStore):
        """Initialize series service.

        Args:
            store: Row store instance
        """
        self.store = store
        self.allocator = SeriesAllocator(store)

    def create_series(
        self,
        tenant_id: int,
        series: str,
        prefix: Optional[str] = None,
        suffix: str = "",
        separator: str = "-",
        include_year: bool = False,
        include_month: bool = False,
        reset_yearly: bool = False,
        start_number: int = 1,
        database_id: Optional[int] = None,
    ) -> InvoiceSeries:
        """Create a numbering series.

        Raises:
            ValidationError: If the name is empty or start_number is below 1
            ConflictError: If the series already exists
        """
        series = (series or "").strip()
        if not series:
            raise ValidationError("Series name cannot be empty", field="series")
        if start_number < 1:
            raise ValidationError("Start number must be at least 1", field="start_number")

        def work(store: RowStore) -> InvoiceSeries:
            database = resolve_database(store, tenant_id, database_id)
            if store.find_series(tenant_id, database.id, series) is not None:
                raise ConflictError(duplicate_series(series), field="series")
            return store.create_series(
                tenant_id,
                database.id,
                series,
                prefix=prefix or "",
                suffix=suffix or "",
                separator=separator,
                include_year=include_year,
                include_month=include_month,
                reset_yearly=reset_yearly,
                current_number=start_number - 1,
            )

        record = self.store.run_transaction(work)
        logger.info("Created invoice series '{}' for tenant {}", series, tenant_id)
        return record

    def list_series(self, tenant_id: int, database_id: Optional[int] = None) -> list[InvoiceSeries]:
        """List the numbering series of a tenant database."""
        database = resolve_database(self.store, tenant_id, database_id)
        return self.store.list_series(tenant_id, database.id)

    def get_series(self, tenant_id: int, series: str, database_id: Optional[int] = None) -> InvoiceSeries:
        """Get a numbering series by name.

        Raises:
            NotFoundError: If the series does not exist
        """
        database = resolve_database(self.store, tenant_id, database_id)
        record = self.store.find_series(tenant_id, database.id, series)
        if record is None:
            raise NotFoundError(series_not_found(series))
        return record

    def update_series(
        self,
        tenant_id: int,
        series: str,
        prefix: Optional[str] = None,
        suffix: Optional[str] = None,
        separator: Optional[str] = None,
        include_year: Optional[bool] = None,
        include_month: Optional[bool] = None,
        reset_yearly: Optional[bool] = None,
        start_number: Optional[int] = None,
        database_id: Optional[int] = None,
    ) -> InvoiceSeries:
        """Update formatting of a series.

        The counter only changes when ``start_number`` is given: the next
        allocation then yields ``start_number``.
        """
        if start_number is not None and start_number < 1:
            raise ValidationError("Start number must be at least 1", field="start_number")
        updates: dict[str, Any] = {
            key: value
            for key, value in (
                ("prefix", prefix),
                ("suffix", suffix),
                ("separator", separator),
                ("include_year", include_year),
                ("include_month", include_month),
                ("reset_yearly", reset_yearly),
            )
            if value is not None
        }
        if start_number is not None:
            updates["current_number"] = start_number - 1

        def work(store: RowStore) -> InvoiceSeries:
            record = self.get_series(tenant_id, series, database_id)
            if not updates:
                return record
            return store.update_series(record.id, **updates)

        return self.store.run_transaction(work)

    def delete_series(self, tenant_id: int, series: str, database_id: Optional[int] = None) -> None:
        """Delete a series that no invoice uses.

        Raises:
            NotFoundError: If the series does not exist
            ConflictError: If invoices still carry the series name
        """

        def work(store: RowStore) -> None:
            record = self.get_series(tenant_id, series, database_id)
            used = self._count_invoices(tenant_id, record.database_id, series)
            if used:
                raise ConflictError(series_in_use(series, used))
            store.delete_series(record.id)

        self.store.run_transaction(work)
        logger.info("Deleted invoice series '{}' for tenant {}", series, tenant_id)

    def _invoice_rows(self, tenant_id: int, database_id: int):
        tables = InvoiceSchemaService(self.store).get_invoice_tables(tenant_id, database_id)
        if tables.invoices is None:
            return None, []
        return build_semantic_map(tables.invoices.columns), self.store.find_rows(tables.invoices.id)

    def _count_invoices(self, tenant_id: int, database_id: int, series: str) -> int:
        mapping, rows = self._invoice_rows(tenant_id, database_id)
        column = mapping.get(SemanticType.INVOICE_SERIES) if mapping else None
        if column is None:
            return 0
        return sum(1 for row in rows if row.value_of(column.id) == series)

    def next_number(
        self,
        tenant_id: int,
        series: Optional[str] = None,
        database_id: Optional[int] = None,
        on_date: Optional[date] = None,
    ) -> InvoiceNumber:
        """Preview the next number of a series, the tenant's default series if none is given."""
        tenant = self.store.get_tenant(tenant_id)
        if tenant is None:
            raise NotFoundError(tenant_not_found(tenant_id))
        database = resolve_database(self.store, tenant_id, database_id)
        return self.allocator.preview(tenant_id, database.id, tenant_series_config(tenant, series), on_date)

    def numbering_stats(self, tenant_id: int, database_id: Optional[int] = None) -> dict[str, Any]:
        """Summarize numbering usage of a tenant database.

        Returns:
            Dictionary with total_invoices, by_series, by_year, by_month,
            last_invoice_number and next_number
        """
        database = resolve_database(self.store, tenant_id, database_id)
        mapping, rows = self._invoice_rows(tenant_id, database.id)
        mapping = mapping or {}
        number_col = mapping.get(SemanticType.INVOICE_NUMBER)
        series_col = mapping.get(SemanticType.INVOICE_SERIES)
        date_col = mapping.get(SemanticType.INVOICE_DATE)

        by_series: Counter = Counter()
        by_year: Counter = Counter()
        by_month: Counter = Counter()
        for row in rows:
            if series_col is not None:
                by_series[row.value_of(series_col.id) or "unknown"] += 1
            issued = stored_date(row.value_of(date_col.id)) if date_col is not None else None
            if issued is not None:
                by_year[str(issued.year)] += 1
                by_month[f"{issued.year}-{issued.month:02d}"] += 1

        last_number = None
        if rows and number_col is not None:
            last_number = rows[-1].value_of(number_col.id)

        return {
            "total_invoices": len(rows),
            "by_series": dict(by_series),
            "by_year": dict(sorted(by_year.items())),
            "by_month": dict(sorted(by_month.items())),
            "last_invoice_number": last_number,
            "next_number": self.next_number(tenant_id, database_id=database.id).number,
        }
