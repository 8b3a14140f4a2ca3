"""Tax-year lock: a cascading watermark over calendar years."""

import logging
from datetime import date
from typing import Iterable, Optional

from ledgerline.database.base import Database
from ledgerline.domain.entities import TaxYearLock
from ledgerline.domain.errors import ConflictError, LockViolationError, ValidationError

logger = logging.getLogger(__name__)

MIN_YEAR = 1900
MAX_YEAR = 2100


def is_year_locked(year: int, max_locked_year: Optional[int]) -> bool:
    """Locking year Y locks every year up to and including Y."""
    return max_locked_year is not None and year <= max_locked_year


def find_locked_dates(dates: Iterable[date], max_locked_year: Optional[int]) -> list[date]:
    """Return the dates that fall in a locked year, sorted and de-duplicated."""
    return sorted({d for d in dates if is_year_locked(d.year, max_locked_year)})


class TaxYearLockService:
    """Service for the tax-year lock watermark."""

    def __init__(self, db: Database):
        """Initialize tax-year lock service.

        Args:
            db: Database instance
        """
        self.db = db

    def get_lock(self) -> TaxYearLock:
        return self.db.get_tax_year_lock()

    def get_max_locked_year(self) -> Optional[int]:
        return self.db.get_tax_year_lock().max_locked_year

    def is_date_locked(self, value: date) -> bool:
        return is_year_locked(value.year, self.get_max_locked_year())

    def is_year_locked(self, year: int) -> bool:
        return is_year_locked(year, self.get_max_locked_year())

    def ensure_unlocked(self, dates: Iterable[date]) -> None:
        """Raise if any of the dates is in a locked tax year.

        Raises:
            LockViolationError: Listing every locked date
        """
        max_locked_year = self.get_max_locked_year()
        locked = find_locked_dates(dates, max_locked_year)
        if locked:
            raise LockViolationError(locked, max_locked_year)

    def lock_year(self, year: int, actor: Optional[str] = None) -> int:
        """Lock a year and, implicitly, every year before it.

        Locking a year that is already covered leaves the watermark alone.

        Returns:
            The watermark after the call
        """
        self._validate_year(year)
        current = self.get_max_locked_year()
        if current is not None and year <= current:
            logger.info("Tax year %d already locked (watermark %d)", year, current)
            return current
        self.db.set_tax_year_lock(year, actor=actor)
        logger.info("Locked tax years through %d", year)
        return year

    def unlock_year(self, year: int, actor: Optional[str] = None) -> Optional[int]:
        """Unlock the most recently locked year.

        Only the watermark itself can be unlocked; it moves down to year - 1.
        Unlocking an earlier year would leave a hole in the cascade.

        Returns:
            The watermark after the call (None when nothing is locked)

        Raises:
            ConflictError: If year is not the watermark
        """
        self._validate_year(year)
        current = self.get_max_locked_year()
        if current is None or year > current:
            raise ConflictError(f"Tax year {year} is not locked")
        if year != current:
            raise ConflictError(
                f"Cannot unlock tax year {year}: years through {current} are locked; "
                f"unlock {current} first"
            )
        new_watermark = year - 1 if year - 1 >= MIN_YEAR else None
        self.db.set_tax_year_lock(new_watermark, actor=actor)
        logger.info("Unlocked tax year %d", year)
        return new_watermark

    @staticmethod
    def _validate_year(year: int) -> None:
        if not MIN_YEAR <= year <= MAX_YEAR:
            raise ValidationError(f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
