"""Tests for CSV reading, column mapping and row staging."""

import pytest
from datetime import date

from ledgerline.domain.csv_mapping import (
    AmountMode,
    CSVMapping,
    get_bank_profile,
    list_bank_profiles,
    validate_mapping,
)
from ledgerline.domain.errors import MappingError, ValidationError
from ledgerline.domain.staging import read_csv_rows, sniff_delimiter, stage_csv, stage_row

SIGNED = CSVMapping(date_column="Date", description_column="Description", amount_column="Amount")


def test_read_csv_rows_with_header():
    parsed = read_csv_rows("Date,Description,Amount\n01/15/2024,COFFEE,-4.50\n")
    assert parsed.columns == ("Date", "Description", "Amount")
    assert parsed.rows == ({"Date": "01/15/2024", "Description": "COFFEE", "Amount": "-4.50"},)
    assert parsed.delimiter == ","


def test_read_csv_rows_handles_quotes_bom_and_blank_lines():
    text = '\ufeffDate,Description,Amount\n\n01/15/2024,"SMITH, JOHN",-10.00\n'
    parsed = read_csv_rows(text)
    assert parsed.columns[0] == "Date"
    assert len(parsed.rows) == 1
    assert parsed.rows[0]["Description"] == "SMITH, JOHN"


def test_read_csv_rows_without_header_uses_positions():
    parsed = read_csv_rows("01/15/2024,COFFEE,-4.50\n01/16/2024,TEA,-3.00\n", has_header_row=False)
    assert parsed.columns == ("0", "1", "2")
    assert parsed.rows[1]["1"] == "TEA"


def test_read_csv_rows_preview_limit():
    text = "A,B\n" + "".join(f"{i},x\n" for i in range(10))
    assert len(read_csv_rows(text, limit=3).rows) == 3


def test_read_csv_rows_empty_file():
    with pytest.raises(ValidationError):
        read_csv_rows("")


def test_sniff_delimiter_semicolon():
    assert sniff_delimiter("Date;Description;Amount\n01/15/2024;COFFEE;-4.50\n") == ";"


def test_validate_mapping_missing_column():
    mapping = CSVMapping(date_column="Date", description_column="", amount_column="Amount")
    with pytest.raises(MappingError, match="description"):
        validate_mapping(mapping)


def test_validate_mapping_ambiguous_column():
    mapping = CSVMapping(date_column="Date", description_column="Date", amount_column="Amount")
    with pytest.raises(MappingError, match="Ambiguous"):
        validate_mapping(mapping)


def test_validate_mapping_unknown_column():
    with pytest.raises(MappingError, match="missing required columns"):
        validate_mapping(SIGNED, columns=["Date", "Amount"])


def test_validate_mapping_unsupported_date_format():
    mapping = CSVMapping(
        date_column="Date", description_column="Description", amount_column="Amount", date_format="dd.MM.yyyy"
    )
    with pytest.raises(MappingError, match="Unsupported date format"):
        validate_mapping(mapping)


def test_separate_mapping_allows_single_flow_column():
    mapping = CSVMapping(
        date_column="Date",
        description_column="Description",
        amount_mode=AmountMode.SEPARATE,
        outflow_column="Debit",
    )
    validate_mapping(mapping, columns=["Date", "Description", "Debit"])


def test_mapping_round_trips_through_dict():
    mapping = get_bank_profile("amex")
    assert CSVMapping.from_dict(mapping.to_dict()) == mapping


def test_bank_profiles_listed():
    assert "CHASE_CHECKING" in list_bank_profiles()
    assert get_bank_profile("no such bank") is None


def test_stage_row_valid():
    staged = stage_row({"Date": "01/15/2024", "Description": " COFFEE ", "Amount": "$4.50-"}, SIGNED, 0)
    assert staged.is_valid
    assert staged.date == date(2024, 1, 15)
    assert staged.amount == -450
    assert staged.description == "COFFEE"
    assert staged.row_number == 1


def test_stage_row_collects_errors():
    staged = stage_row({"Date": "2024-13-45", "Description": "", "Amount": "abc"}, SIGNED, 4)
    assert not staged.is_valid
    assert staged.date is None
    assert any("Invalid date" in e for e in staged.errors)
    assert any('Invalid amount: "abc"' in e for e in staged.errors)
    assert any("Missing description" in e for e in staged.errors)


def test_stage_row_required_fields():
    staged = stage_row({"Date": "", "Description": "X", "Amount": ""}, SIGNED, 0)
    assert staged.errors == ("Date is required", "Amount is required")


def test_stage_csv_separate_columns(fixtures_dir):
    text = (fixtures_dir / "amex.csv").read_text(encoding="utf-8")
    parsed, staged = stage_csv(text, get_bank_profile("AMEX"))

    assert len(parsed.rows) == 3
    assert staged[0].amount == -2599
    assert staged[1].amount == 10000
    assert not staged[2].is_valid
    assert "Missing amount" in staged[2].errors[0]


def test_stage_csv_signed_profile(fixtures_dir):
    text = (fixtures_dir / "chase_checking.csv").read_text(encoding="utf-8")
    _, staged = stage_csv(text, get_bank_profile("CHASE_CHECKING"))
    assert [s.row_index for s in staged] == [0, 1, 2]
    assert all(s.is_valid for s in staged)
    assert staged[1].amount == 250000


def test_stage_csv_mapping_must_fit_file():
    with pytest.raises(MappingError):
        stage_csv("When,What,HowMuch\n01/15/2024,COFFEE,-4.50\n", SIGNED)
