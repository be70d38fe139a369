"""Lays aggregation results out as format-agnostic report tables.

Every cell is formatted here, once, so the CSV, XLSX and PDF encoders all
print the same display strings.
"""

import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Callable, Dict, List

from pydantic import BaseModel, ConfigDict

from .schemas import (
    BranchPerformanceRow, DetailedRow, ReportTable, ReportType, SummaryReport
)

CENT = Decimal("0.01")


class ReportFormatter(BaseModel):
    """Immutable display formatting for one report."""
    currency: str = "MVR"
    date_format: str = "%d %b %Y"

    model_config = ConfigDict(frozen=True)

    def money(self, value: Decimal) -> str:
        return f"{self.currency} {Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP):,.2f}"

    def integer(self, value: int) -> str:
        return f"{value:,}"

    def share(self, percentage: float) -> str:
        return f"{percentage:.1f}%"

    def date(self, value: datetime.date) -> str:
        return value.strftime(self.date_format)


def build_summary_table(summary: SummaryReport, fmt: ReportFormatter) -> ReportTable:
    rows = [
        [item.status.value, fmt.integer(item.count), fmt.money(item.total_amount), fmt.share(item.percentage)]
        for item in summary.status_breakdown
    ]
    rows.append([
        "Total",
        fmt.integer(summary.totals.entries),
        fmt.money(summary.totals.amount),
        "100%",
    ])
    return ReportTable(
        title="Registry Summary Report",
        columns=["Status", "Agreements", "Total Amount", "Share"],
        rows=rows,
    )


def build_detailed_table(rows: List[DetailedRow], fmt: ReportFormatter) -> ReportTable:
    return ReportTable(
        title="Registry Detailed Listing",
        columns=["Registry No", "Agreement", "Borrowers", "Island", "Branch", "Status", "Loan Amount", "Date"],
        rows=[
            [
                str(row.number),
                row.agreement_number,
                "; ".join(row.borrowers),
                row.island,
                row.branch,
                row.status.value,
                fmt.money(row.loan_amount),
                fmt.date(row.agreement_date),
            ]
            for row in rows
        ],
    )


def build_custom_table(rows: List[BranchPerformanceRow], fmt: ReportFormatter) -> ReportTable:
    return ReportTable(
        title="Registry Branch Performance",
        columns=["Branch", "Agreements", "Total Amount", "Average Amount"],
        rows=[
            [row.branch, fmt.integer(row.count), fmt.money(row.total_amount), fmt.money(row.average_amount)]
            for row in rows
        ],
    )


TABLE_BUILDERS: Dict[ReportType, Callable[..., ReportTable]] = {
    ReportType.SUMMARY: build_summary_table,
    ReportType.DETAILED: build_detailed_table,
    ReportType.CUSTOM: build_custom_table,
}
