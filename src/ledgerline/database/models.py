"""SQLAlchemy models for ledgerline database.

Money columns hold integer cents.
"""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    BigInteger,
    String,
    ForeignKey,
    DateTime,
    Date,
    Boolean,
    JSON,
    Index,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _now() -> datetime:
    return datetime.now(UTC)


class Account(Base):
    """Bank account model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    bank_name = Column(String, nullable=False)
    opening_balance = Column(BigInteger, default=0, nullable=False)
    opening_balance_date = Column(Date, nullable=True)
    last_reconciled_balance = Column(BigInteger, nullable=True)
    last_reconciled_date = Column(Date, nullable=True)
    csv_mapping = Column(JSON, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=_now)

    # Relationships
    csv_formats = relationship("CSVFormat", back_populates="account", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="account", cascade="all, delete-orphan")


class CSVFormat(Base):
    """Saved CSV mapping model."""

    __tablename__ = "csv_formats"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    mapping = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    account = relationship("Account", back_populates="csv_formats")


class Category(Base):
    """Category model with hierarchical structure."""

    __tablename__ = "categories"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_now, nullable=False)

    # Relationships
    parent = relationship("Category", remote_side=[id], backref="children")


class ImportBatch(Base):
    """One committed CSV import."""

    __tablename__ = "import_batches"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    file_name = Column(String, nullable=False)
    imported_at = Column(DateTime, default=_now, nullable=False)
    imported_by = Column(String, nullable=True)
    total_rows = Column(Integer, default=0, nullable=False)
    imported_count = Column(Integer, default=0, nullable=False)
    duplicate_count = Column(Integer, default=0, nullable=False)
    error_count = Column(Integer, default=0, nullable=False)
    mapping_snapshot = Column(JSON, nullable=True)
    is_undone = Column(Boolean, default=False, nullable=False)
    undone_at = Column(DateTime, nullable=True)
    undone_by = Column(String, nullable=True)

    transactions = relationship("Transaction", back_populates="source_batch")


class Transaction(Base):
    """Transaction model."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    date = Column(Date, nullable=False)
    amount = Column(BigInteger, nullable=False)
    payee = Column(String, nullable=True)
    original_description = Column(String, nullable=False)
    fingerprint = Column(String, nullable=True)
    is_split = Column(Boolean, default=False, nullable=False)
    is_reviewed = Column(Boolean, default=False, nullable=False)
    reconciled = Column(Boolean, default=False, nullable=False)
    reconciled_at = Column(DateTime, nullable=True)
    is_archived = Column(Boolean, default=False, nullable=False)
    source_batch_id = Column(Integer, ForeignKey("import_batches.id"), nullable=True)
    last_modified_by = Column(String, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=_now)

    __table_args__ = (Index("ix_transactions_account_amount", "account_id", "amount"),)

    # Relationships
    account = relationship("Account", back_populates="transactions")
    source_batch = relationship("ImportBatch", back_populates="transactions")
    lines = relationship(
        "TransactionLine",
        back_populates="transaction",
        cascade="all, delete-orphan",
        order_by="TransactionLine.position",
    )


class TransactionLine(Base):
    """Category allocation of a transaction amount."""

    __tablename__ = "transaction_lines"

    id = Column(Integer, primary_key=True)
    transaction_id = Column(Integer, ForeignKey("transactions.id"), nullable=False)
    position = Column(Integer, default=0, nullable=False)
    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True)
    amount = Column(BigInteger, nullable=False)
    memo = Column(String, nullable=True)

    transaction = relationship("Transaction", back_populates="lines")
    category = relationship("Category")


class Rule(Base):
    """Keyword categorization rule model."""

    __tablename__ = "rules"

    id = Column(Integer, primary_key=True)
    keyword = Column(String, nullable=False)
    match_type = Column(String, default="contains", nullable=False)
    target_category_id = Column(Integer, ForeignKey("categories.id"), nullable=False)
    priority = Column(Integer, default=100, nullable=False)
    case_sensitive = Column(Boolean, default=False, nullable=False)
    suggested_payee = Column(String, nullable=True)
    is_enabled = Column(Boolean, default=True, nullable=False)
    use_count = Column(Integer, default=0, nullable=False)
    last_used_at = Column(DateTime, nullable=True)
    amount_min = Column(BigInteger, nullable=True)
    amount_max = Column(BigInteger, nullable=True)
    created_at = Column(DateTime, default=_now, nullable=False)
    updated_at = Column(DateTime, nullable=True, onupdate=_now)


class Reconciliation(Base):
    """Finalized reconciliation record."""

    __tablename__ = "reconciliations"

    id = Column(Integer, primary_key=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    statement_date = Column(Date, nullable=False)
    statement_balance = Column(BigInteger, nullable=False)
    opening_balance = Column(BigInteger, nullable=False)
    calculated_balance = Column(BigInteger, nullable=False)
    difference = Column(BigInteger, nullable=False)
    transaction_ids = Column(JSON, nullable=False)
    finalized_at = Column(DateTime, default=_now, nullable=False)
    finalized_by = Column(String, nullable=True)


class TaxYearLock(Base):
    """Single-row tax-year lock watermark."""

    __tablename__ = "tax_year_locks"

    id = Column(Integer, primary_key=True)
    max_locked_year = Column(Integer, nullable=True)
    locked_at = Column(DateTime, nullable=True)
    locked_by = Column(String, nullable=True)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
