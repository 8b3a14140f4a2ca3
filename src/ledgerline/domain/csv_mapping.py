"""Column mapping between a bank's CSV export and staged transactions."""

from dataclasses import dataclass, asdict, replace
from enum import Enum
from typing import Any, Optional, Sequence

from ledgerline.domain.errors import MappingError
from ledgerline.utils.date_parser import DATE_FORMATS


class AmountMode(str, Enum):
    """Where a row's amount comes from."""

    SIGNED = "signed"  # one column, sign carries debit/credit
    SEPARATE = "separate"  # inflow and outflow columns


@dataclass(frozen=True)
class CSVMapping:
    """User-chosen mapping of CSV columns to transaction fields.

    Column names are header names, or "0", "1", ... when the file has no
    header row.
    """

    date_column: str
    description_column: str
    amount_column: Optional[str] = None
    date_format: str = "MM/dd/yyyy"
    has_header_row: bool = True
    amount_mode: AmountMode = AmountMode.SIGNED
    inflow_column: Optional[str] = None
    outflow_column: Optional[str] = None
    delimiter: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["amount_mode"] = self.amount_mode.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CSVMapping":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if "amount_mode" in known:
            known["amount_mode"] = AmountMode(known["amount_mode"])
        return cls(**known)

    def with_delimiter(self, delimiter: str) -> "CSVMapping":
        return replace(self, delimiter=delimiter)

    def roles(self) -> dict[str, Optional[str]]:
        """Return role name -> column for every role this mapping uses."""
        roles: dict[str, Optional[str]] = {
            "date": self.date_column,
            "description": self.description_column,
        }
        if self.amount_mode == AmountMode.SIGNED:
            roles["amount"] = self.amount_column
        else:
            roles["inflow"] = self.inflow_column
            roles["outflow"] = self.outflow_column
        return roles


def validate_mapping(mapping: CSVMapping, columns: Optional[Sequence[str]] = None) -> None:
    """Check that a mapping is complete and unambiguous.

    Args:
        mapping: Mapping to check
        columns: Column names present in the file; when given, every mapped
            column must exist

    Raises:
        MappingError: If a required column is missing, ambiguous or unknown
    """
    if mapping.date_format not in DATE_FORMATS:
        raise MappingError(
            f"Unsupported date format '{mapping.date_format}'. "
            f"Supported formats: {', '.join(DATE_FORMATS)}"
        )

    roles = mapping.roles()
    if mapping.amount_mode == AmountMode.SEPARATE:
        if not mapping.inflow_column and not mapping.outflow_column:
            raise MappingError("Separate amount mode requires an inflow or outflow column")
        # One of the two may be absent for exports with a single flow direction
        roles = {role: column for role, column in roles.items() if column or role not in ("inflow", "outflow")}

    missing = sorted(role for role, column in roles.items() if not column)
    if missing:
        raise MappingError(f"Missing required column mapping: {', '.join(missing)}")

    seen: dict[str, str] = {}
    for role, column in roles.items():
        if column in seen:
            raise MappingError(
                f"Ambiguous mapping: column '{column}' is mapped to both "
                f"{seen[column]} and {role}"
            )
        seen[column] = role

    if columns is not None:
        available = set(columns)
        unknown = sorted(column for column in seen if column not in available)
        if unknown:
            raise MappingError(f"CSV file missing required columns: {', '.join(unknown)}")


BANK_PROFILES: dict[str, CSVMapping] = {
    "CHASE_CHECKING": CSVMapping(
        date_column="Posting Date",
        amount_column="Amount",
        description_column="Description",
    ),
    "AMEX": CSVMapping(
        date_column="Date",
        description_column="Description",
        amount_mode=AmountMode.SEPARATE,
        inflow_column="Credits",
        outflow_column="Charges",
    ),
    "BANK_OF_AMERICA": CSVMapping(
        date_column="Date",
        amount_column="Amount",
        description_column="Description",
    ),
    "WELLS_FARGO": CSVMapping(
        date_column="Date",
        amount_column="Amount",
        description_column="Description",
    ),
}


def get_bank_profile(name: str) -> Optional[CSVMapping]:
    """Return the built-in mapping for a bank profile, if any."""
    return BANK_PROFILES.get(name.upper())


def list_bank_profiles() -> list[str]:
    return sorted(BANK_PROFILES)
