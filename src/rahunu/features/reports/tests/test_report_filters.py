import datetime
from decimal import Decimal

import pytest

from rahunu.features.entries.models import EntryStatus
from rahunu.features.reports.filters import amount_in_range, normalize_filters
from rahunu.features.reports.schemas import NormalizedReportFilters, ReportFilters


@pytest.mark.parametrize("value", ["ALL", "", "   ", "\t\n", None])
def test_sentinel_or_blank_island_and_branch_are_dropped(value):
    normalized = normalize_filters(ReportFilters(island=value, branch=value))
    assert normalized.island is None
    assert normalized.branch is None


def test_island_and_branch_are_kept_verbatim():
    normalized = normalize_filters(ReportFilters(island="S.Hithadhoo", branch="Branch A"))
    assert normalized.island == "S.Hithadhoo"
    assert normalized.branch == "Branch A"


@pytest.mark.parametrize("value", ["2025-13-01", "yesterday", "01/06/2025", "2025-02-30", "", "  "])
def test_malformed_dates_are_dropped(value):
    normalized = normalize_filters(ReportFilters(start_date=value, end_date=value))
    assert normalized.start_date is None
    assert normalized.end_date is None


def test_iso_dates_and_timestamps_are_parsed():
    normalized = normalize_filters(
        ReportFilters(start_date="2025-01-01", end_date="2025-06-30T18:30:00.000Z")
    )
    assert normalized.start_date == datetime.date(2025, 1, 1)
    assert normalized.end_date == datetime.date(2025, 6, 30)


def test_offset_timestamps_use_the_utc_date():
    normalized = normalize_filters(
        ReportFilters(start_date="2025-06-30T23:30:00-05:00", end_date="2025-07-01T02:00:00+05:00")
    )
    assert normalized.start_date == datetime.date(2025, 7, 1)
    assert normalized.end_date == datetime.date(2025, 6, 30)


def test_status_is_parsed_case_insensitively():
    assert normalize_filters(ReportFilters(status="completed")).status == EntryStatus.COMPLETED
    assert normalize_filters(ReportFilters(status="ALL")).status is None
    assert normalize_filters(ReportFilters(status="ACTIVE")).status is None


@pytest.mark.parametrize(
    "raw, expected",
    [
        (100000, Decimal("100000")),
        ("250000.50", Decimal("250000.50")),
        (0.1, Decimal("0.1")),
        (" 42 ", Decimal("42")),
        ("abc", None),
        ("", None),
        ("NaN", None),
        ("Infinity", None),
        ("1_000", None),
    ],
)
def test_amounts(raw, expected):
    normalized = normalize_filters(ReportFilters(min_amount=raw))
    assert normalized.min_amount == expected


def test_camel_case_aliases_are_accepted():
    raw = ReportFilters.model_validate(
        {"startDate": "2025-01-01", "minAmount": 10, "maxAmount": "20"}
    )
    normalized = normalize_filters(raw)
    assert normalized.start_date == datetime.date(2025, 1, 1)
    assert normalized.min_amount == Decimal("10")
    assert normalized.max_amount == Decimal("20")


def test_missing_filters_normalize_to_empty():
    assert normalize_filters(None) == NormalizedReportFilters()
    assert normalize_filters(ReportFilters()) == NormalizedReportFilters()


def test_amount_range_is_inclusive():
    filters = NormalizedReportFilters(min_amount=Decimal("100000"), max_amount=Decimal("250000"))
    assert amount_in_range(Decimal("100000"), filters)
    assert amount_in_range(Decimal("250000.00"), filters)
    assert not amount_in_range(Decimal("99999.99"), filters)
    assert not amount_in_range(Decimal("250000.01"), filters)
    assert amount_in_range(Decimal("1"), NormalizedReportFilters())
