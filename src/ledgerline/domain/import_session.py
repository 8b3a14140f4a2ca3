"""Step-by-step state of one CSV import.

An ImportSession is immutable; every transition returns a new session and
leaves the old one untouched, so abandoning an import at any step has no
effect on stored data.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ledgerline.domain.csv_mapping import CSVMapping
from ledgerline.domain.duplicates import DetectionResult
from ledgerline.domain.errors import ValidationError
from ledgerline.domain.import_batch import CommitResult
from ledgerline.domain.staging import ParsedCSV, StagedTransaction


class ImportStep(str, Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    REVIEW = "review"
    IMPORTING = "importing"
    COMPLETE = "complete"
    ERROR = "error"


@dataclass(frozen=True)
class ImportSession:
    account_id: int
    step: ImportStep = ImportStep.UPLOAD
    file_name: Optional[str] = None
    text: Optional[str] = None
    parsed: Optional[ParsedCSV] = None
    mapping: Optional[CSVMapping] = None
    staged: tuple[StagedTransaction, ...] = ()
    detection: Optional[DetectionResult] = None
    result: Optional[CommitResult] = None
    error: Optional[str] = None

    def _require(self, action: str, *steps: ImportStep) -> None:
        if self.step not in steps:
            raise ValidationError(f"Cannot {action} during the {self.step.value} step")

    @property
    def valid_rows(self) -> list[StagedTransaction]:
        return [row for row in self.staged if row.is_valid]

    @property
    def invalid_rows(self) -> list[StagedTransaction]:
        return [row for row in self.staged if not row.is_valid]

    def upload(self, file_name: str, text: str, parsed: ParsedCSV) -> "ImportSession":
        """Attach a file. Uploading again before review replaces it."""
        self._require("upload a file", ImportStep.UPLOAD, ImportStep.MAPPING)
        return ImportSession(
            account_id=self.account_id,
            step=ImportStep.MAPPING,
            file_name=file_name,
            text=text,
            parsed=parsed,
        )

    def apply_mapping(self, mapping: CSVMapping, staged: list[StagedTransaction]) -> "ImportSession":
        """Record staged rows for a mapping; earlier detection is discarded."""
        self._require("apply a mapping", ImportStep.MAPPING, ImportStep.REVIEW)
        return replace(
            self,
            step=ImportStep.MAPPING,
            mapping=mapping,
            staged=tuple(staged),
            detection=None,
        )

    def check_duplicates(self, detection: DetectionResult) -> "ImportSession":
        """Move to review with a detection run over the current staged rows."""
        self._require("check duplicates", ImportStep.MAPPING, ImportStep.REVIEW)
        if self.mapping is None:
            raise ValidationError("Apply a column mapping before checking duplicates")
        if detection.account_id != self.account_id or tuple(r.staged for r in detection.rows) != self.staged:
            raise ValidationError("Duplicate detection does not match the staged rows")
        return replace(self, step=ImportStep.REVIEW, detection=detection)

    def begin_import(self) -> "ImportSession":
        """Start committing. Retrying after a failed commit is allowed."""
        self._require("import", ImportStep.REVIEW, ImportStep.ERROR)
        if self.detection is None:
            raise ValidationError("Check for duplicates before importing")
        return replace(self, step=ImportStep.IMPORTING, error=None)

    def complete(self, result: CommitResult) -> "ImportSession":
        self._require("complete the import", ImportStep.IMPORTING)
        return replace(self, step=ImportStep.COMPLETE, result=result)

    def fail(self, message: str) -> "ImportSession":
        self._require("fail the import", ImportStep.IMPORTING)
        return replace(self, step=ImportStep.ERROR, error=message)

    def reset(self) -> "ImportSession":
        return ImportSession(account_id=self.account_id)
