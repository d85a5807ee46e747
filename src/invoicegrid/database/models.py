"""SQLAlchemy models for the invoicegrid row store."""

from datetime import datetime, UTC
from sqlalchemy import (
    JSON,
    Boolean,
    Column as SAColumn,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Tenant(Base):
    """Tenant model holding invoice numbering settings."""

    __tablename__ = "tenants"

    id = SAColumn(Integer, primary_key=True)
    name = SAColumn(String, unique=True, nullable=False)
    default_currency = SAColumn(String(3), default="USD", nullable=False)
    invoice_series_prefix = SAColumn(String, default="INV", nullable=False)
    invoice_include_year = SAColumn(Boolean, default=True, nullable=False)
    invoice_start_number = SAColumn(Integer, default=1, nullable=False)
    created_at = SAColumn(DateTime, default=_utcnow, nullable=False)

    # Relationships
    databases = relationship("Database", back_populates="tenant", cascade="all, delete-orphan")


class Database(Base):
    """Tenant-owned database model."""

    __tablename__ = "databases"

    id = SAColumn(Integer, primary_key=True)
    tenant_id = SAColumn(Integer, ForeignKey("tenants.id"), nullable=False)
    name = SAColumn(String, nullable=False)
    is_default = SAColumn(Boolean, default=False, nullable=False)
    created_at = SAColumn(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("tenant_id", "name", name="uq_tenant_database_name"),)

    # Relationships
    tenant = relationship("Tenant", back_populates="databases")
    tables = relationship("Table", back_populates="database", cascade="all, delete-orphan")


class Table(Base):
    """Generic table model."""

    __tablename__ = "tables"

    id = SAColumn(Integer, primary_key=True)
    database_id = SAColumn(Integer, ForeignKey("databases.id"), nullable=False)
    name = SAColumn(String, nullable=False)
    description = SAColumn(String, nullable=True)
    is_protected = SAColumn(Boolean, default=False, nullable=False)
    protected_type = SAColumn(String, nullable=True)
    created_at = SAColumn(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (UniqueConstraint("database_id", "name", name="uq_database_table_name"),)

    # Relationships
    database = relationship("Database", back_populates="tables")
    columns = relationship(
        "Column",
        back_populates="table",
        cascade="all, delete-orphan",
        order_by="Column.order",
        foreign_keys="Column.table_id",
    )
    rows = relationship("Row", back_populates="table", cascade="all, delete-orphan")


class Column(Base):
    """Column descriptor model with its semantic type tag."""

    __tablename__ = "columns"

    id = SAColumn(Integer, primary_key=True)
    table_id = SAColumn(Integer, ForeignKey("tables.id"), nullable=False)
    name = SAColumn(String, nullable=False)
    type = SAColumn(String, default="string", nullable=False)
    semantic_type = SAColumn(String, nullable=True)
    required = SAColumn(Boolean, default=False, nullable=False)
    order = SAColumn(Integer, default=0, nullable=False)
    is_locked = SAColumn(Boolean, default=False, nullable=False)
    reference_table_id = SAColumn(Integer, ForeignKey("tables.id"), nullable=True)

    __table_args__ = (UniqueConstraint("table_id", "name", name="uq_table_column_name"),)

    # Relationships
    table = relationship("Table", back_populates="columns", foreign_keys=[table_id])


class Row(Base):
    """Generic row model."""

    __tablename__ = "rows"

    id = SAColumn(Integer, primary_key=True)
    table_id = SAColumn(Integer, ForeignKey("tables.id"), nullable=False, index=True)
    created_at = SAColumn(DateTime, default=_utcnow, nullable=False)

    # Relationships
    table = relationship("Table", back_populates="rows")
    cells = relationship("Cell", back_populates="row", cascade="all, delete-orphan")


class Cell(Base):
    """Cell value model. Values are JSON scalars or a one-id list for references."""

    __tablename__ = "cells"

    id = SAColumn(Integer, primary_key=True)
    row_id = SAColumn(Integer, ForeignKey("rows.id"), nullable=False, index=True)
    column_id = SAColumn(Integer, ForeignKey("columns.id"), nullable=False)
    value = SAColumn(JSON, nullable=True)

    __table_args__ = (UniqueConstraint("row_id", "column_id", name="uq_row_column_cell"),)

    # Relationships
    row = relationship("Row", back_populates="cells")


class InvoiceSeries(Base):
    """Invoice numbering series.

    SQL column names are the stable on-disk contract read by reporting and
    admin tooling, so they keep their camelCase spelling.
    """

    __tablename__ = "invoice_series"

    id = SAColumn(Integer, primary_key=True)
    tenant_id = SAColumn("tenantId", Integer, ForeignKey("tenants.id"), nullable=False)
    database_id = SAColumn("databaseId", Integer, ForeignKey("databases.id"), nullable=False)
    series = SAColumn("series", String, nullable=False)
    prefix = SAColumn("prefix", String, default="", nullable=False)
    suffix = SAColumn("suffix", String, default="", nullable=False)
    separator = SAColumn("separator", String, default="-", nullable=False)
    include_year = SAColumn("includeYear", Boolean, default=False, nullable=False)
    include_month = SAColumn("includeMonth", Boolean, default=False, nullable=False)
    reset_yearly = SAColumn("resetYearly", Boolean, default=False, nullable=False)
    current_number = SAColumn("currentNumber", Integer, default=0, nullable=False)
    last_year = SAColumn("lastYear", Integer, nullable=True)
    created_at = SAColumn("createdAt", DateTime, default=_utcnow, nullable=False)
    updated_at = SAColumn("updatedAt", DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("tenantId", "databaseId", "series", name="uq_tenant_database_series"),
    )


def _use_immediate_transactions(engine) -> None:
    """Make SQLite take the write lock when a transaction begins.

    pysqlite's own transaction handling is disabled so that every
    transaction starts with BEGIN IMMEDIATE and concurrent writers queue on
    the busy timeout instead of failing on lock upgrade.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_session_factory(database_url: str, busy_timeout: float = 30.0) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = {"timeout": busy_timeout, "check_same_thread": False}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        _use_immediate_transactions(engine)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
