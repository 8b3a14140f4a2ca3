"""CSV import domain service."""

import logging
import warnings
from pathlib import Path
from typing import Iterable, Optional

from ledgerline.database.base import Database
from ledgerline.domain.account import AccountService
from ledgerline.domain.csv_format import CSVFormatService
from ledgerline.domain.csv_mapping import CSVMapping, get_bank_profile
from ledgerline.domain.duplicates import DEFAULT_FUZZY_WINDOW_DAYS, DuplicateClassification, detect_duplicates
from ledgerline.domain.errors import (
    CommitFailure,
    DuplicateAmbiguityWarning,
    MappingError,
    NotFoundError,
    ValidationError,
)
from ledgerline.domain.import_batch import ImportBatchService
from ledgerline.domain.import_session import ImportSession
from ledgerline.domain.staging import MAX_FILE_SIZE, PREVIEW_ROWS, ParsedCSV, read_csv_rows, stage_csv

logger = logging.getLogger(__name__)


class CSVImportService:
    """Service for importing CSV files.

    Drives an ImportSession through upload, mapping, duplicate review and
    commit. Nothing is written until commit().
    """

    def __init__(self, db: Database, fuzzy_window_days: int = DEFAULT_FUZZY_WINDOW_DAYS):
        """Initialize CSV import service.

        Args:
            db: Database instance
            fuzzy_window_days: Date tolerance for fuzzy duplicates
        """
        self.db = db
        self.fuzzy_window_days = fuzzy_window_days
        self.account_service = AccountService(db)
        self.format_service = CSVFormatService(db)
        self.batch_service = ImportBatchService(db)

    def read_file(self, csv_file_path: str) -> str:
        """Read a CSV file as text.

        Raises:
            FileNotFoundError: If CSV file doesn't exist
            ValidationError: If the file is too large or not UTF-8 text
        """
        csv_path = Path(csv_file_path)
        if not csv_path.exists():
            raise FileNotFoundError(f"CSV file not found: {csv_file_path}")
        if csv_path.stat().st_size > MAX_FILE_SIZE:
            raise ValidationError(f"File too large. Maximum size is {MAX_FILE_SIZE // 1024 // 1024}MB.")
        try:
            return csv_path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise ValidationError(f"CSV file is not valid UTF-8 text: {e}") from e

    def start(self, account_id: int) -> ImportSession:
        """Begin an import into an active account."""
        account = self.account_service.require_account(account_id)
        if account.is_archived:
            raise ValidationError(f"Account {account_id} is archived")
        return ImportSession(account_id=account_id)

    def upload(self, session: ImportSession, csv_file_path: str) -> ImportSession:
        """Read a file into the session and parse it for column selection."""
        text = self.read_file(csv_file_path)
        parsed = read_csv_rows(text)
        logger.info("Read %d rows from %s", len(parsed.rows), csv_file_path)
        return session.upload(Path(csv_file_path).name, text, parsed)

    def preview(self, session: ImportSession, rows: int = PREVIEW_ROWS) -> ParsedCSV:
        """First rows of the uploaded file, for choosing a mapping."""
        if session.text is None:
            raise ValidationError("No file uploaded")
        has_header = session.mapping.has_header_row if session.mapping else True
        return read_csv_rows(session.text, has_header_row=has_header, limit=rows)

    def resolve_mapping(
        self,
        account_id: int,
        format_name: Optional[str] = None,
        bank_profile: Optional[str] = None,
    ) -> CSVMapping:
        """Find the mapping to use: a saved format, a bank profile, or the
        mapping last used for the account, in that order.

        Raises:
            NotFoundError: If a named format or profile doesn't exist
            MappingError: If no mapping is available
        """
        if format_name is not None:
            fmt = self.format_service.get_format_by_name(format_name)
            if fmt is None:
                raise NotFoundError(f"CSV format '{format_name}' not found")
            return fmt.mapping
        if bank_profile is not None:
            mapping = get_bank_profile(bank_profile)
            if mapping is None:
                raise NotFoundError(f"Bank profile '{bank_profile}' not found")
            return mapping
        account = self.account_service.require_account(account_id)
        if account.csv_mapping is None:
            raise MappingError(
                f"No column mapping for account {account_id}: pass a format or bank profile"
            )
        return account.csv_mapping

    def apply_mapping(self, session: ImportSession, mapping: CSVMapping) -> ImportSession:
        """Stage the uploaded file with a mapping.

        Raises:
            MappingError: If the mapping does not fit the file
        """
        if session.text is None:
            raise ValidationError("No file uploaded")
        parsed, staged = stage_csv(session.text, mapping)
        if mapping.delimiter is None:
            mapping = mapping.with_delimiter(parsed.delimiter)
        return session.apply_mapping(mapping, staged)

    def check_duplicates(self, session: ImportSession) -> ImportSession:
        """Classify staged rows against the account's existing transactions."""
        existing = self.db.list_transactions(account_id=session.account_id)
        detection = detect_duplicates(
            list(session.staged),
            existing,
            session.account_id,
            fuzzy_window_days=self.fuzzy_window_days,
        )
        fuzzy = detection.stats.fuzzy_duplicates
        if fuzzy:
            warnings.warn(
                f"{fuzzy} row{'s' if fuzzy != 1 else ''} may duplicate existing transactions; "
                "review them before importing",
                DuplicateAmbiguityWarning,
                stacklevel=2,
            )
        return session.check_duplicates(detection)

    def commit(
        self,
        session: ImportSession,
        keep_fuzzy: Iterable[int] = (),
        exclude_rows: Iterable[int] = (),
        apply_rules: bool = True,
        actor: Optional[str] = None,
    ) -> ImportSession:
        """Commit the reviewed rows as one batch.

        A storage failure leaves nothing behind and returns the session in the
        error step, from which the commit can be retried.

        Raises:
            ValidationError: If duplicates have not been checked
            LockViolationError: If accepted rows fall in a locked tax year
        """
        importing = session.begin_import()
        try:
            result = self.batch_service.commit(
                account_id=session.account_id,
                file_name=session.file_name or "",
                detection=importing.detection,
                keep_fuzzy=keep_fuzzy,
                exclude_rows=exclude_rows,
                apply_rules=apply_rules,
                mapping=session.mapping,
                actor=actor,
            )
        except CommitFailure as e:
            logger.error("Import of %s failed: %s", session.file_name, e)
            return importing.fail(str(e))
        return importing.complete(result)

    def import_file(
        self,
        account_id: int,
        csv_file_path: str,
        mapping: CSVMapping,
        keep_fuzzy: Iterable[int] = (),
        apply_rules: bool = True,
        actor: Optional[str] = None,
    ) -> ImportSession:
        """Run a whole import in one call (no interactive review).

        Fuzzy duplicates are only imported when listed in keep_fuzzy.
        """
        session = self.start(account_id)
        session = self.upload(session, csv_file_path)
        session = self.apply_mapping(session, mapping)
        session = self.check_duplicates(session)
        return self.commit(session, keep_fuzzy=keep_fuzzy, apply_rules=apply_rules, actor=actor)

    @staticmethod
    def fuzzy_rows(session: ImportSession):
        if session.detection is None:
            return []
        return session.detection.with_classification(DuplicateClassification.FUZZY)
