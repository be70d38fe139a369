"""
Reports Service Module

Aggregations over the loan registry and the report assembly pipeline:
normalized filters -> aggregation -> report table -> encoded file, or
normalized filters -> aggregation -> JSON preview.

All money arithmetic is done on ``Decimal`` values read from the database.
Amounts are only turned into floats or display strings at the edges
(preview serialization and table building).
"""

import datetime
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic_core import to_jsonable_python

from ...core.config import REPORT_CURRENCY, REPORT_FILENAME_PREFIX
from ..entries.models import EntryStatus, RegistryEntry
from .encoders import ENCODERS
from .filters import amount_in_range, build_entry_query, normalize_filters
from .schemas import (
    BranchPerformanceRow, DetailedRow, IslandSummary, NormalizedReportFilters,
    PreviewResponse, RecentEntry, ReportFile, ReportRequest, ReportType,
    StatusBreakdownItem, SummaryReport, SummaryTotals
)
from .tables import TABLE_BUILDERS, ReportFormatter

logger = logging.getLogger(__name__)

TOP_ISLANDS_LIMIT = 5
RECENT_ENTRIES_LIMIT = 5
ZERO = Decimal("0")


async def _fetch_entries(filters: NormalizedReportFilters, with_borrowers: bool = False) -> List[RegistryEntry]:
    """Live entries matching the filters, newest agreement first, then by registry number."""
    query = build_entry_query(filters).order_by("-agreement_date", "number")
    if with_borrowers:
        query = query.prefetch_related("borrowers")
    entries = await query
    return [entry for entry in entries if amount_in_range(entry.loan_amount, filters)]


def _borrower_names(entry: RegistryEntry) -> List[str]:
    return [borrower.full_name for borrower in entry.borrowers]


async def fetch_summary(filters: NormalizedReportFilters) -> SummaryReport:
    """
    Generates the registry summary.

    Args:
        filters: Normalized report filters.

    Returns:
        SummaryReport: An object containing:
            - totals: entry count, summed and mean loan amount
            - status_breakdown: count, amount and share per status, largest first.
              Statuses without any matching entry are omitted; callers that need
              all three statuses in a fixed order must fill the gaps themselves.
            - top_islands: the five islands with the most entries (blank names skipped)
            - recent_entries: the five newest agreements with borrower names
    """
    entries = await _fetch_entries(filters)

    total_count = 0
    total_amount = ZERO
    by_status: Dict[EntryStatus, dict] = defaultdict(lambda: {"count": 0, "amount": ZERO})
    by_island: Dict[str, dict] = defaultdict(lambda: {"count": 0, "amount": ZERO})
    for entry in entries:
        total_count += 1
        total_amount += entry.loan_amount
        by_status[entry.status]["count"] += 1
        by_status[entry.status]["amount"] += entry.loan_amount
        by_island[entry.island]["count"] += 1
        by_island[entry.island]["amount"] += entry.loan_amount

    status_breakdown = [
        StatusBreakdownItem(
            status=entry_status,
            count=data["count"],
            total_amount=data["amount"],
            percentage=0.0 if total_count == 0 else data["count"] * 100 / total_count,
        )
        for entry_status, data in by_status.items()
    ]
    status_breakdown.sort(key=lambda item: (-item.count, item.status.value))

    top_islands = [
        IslandSummary(island=island, count=data["count"], total_amount=data["amount"])
        for island, data in by_island.items()
        if island and island.strip()
    ]
    top_islands.sort(key=lambda item: (-item.count, item.island))

    recent = entries[:RECENT_ENTRIES_LIMIT]
    if recent:
        await RegistryEntry.fetch_for_list(recent, "borrowers")
    recent_entries = [
        RecentEntry(
            public_id=entry.public_id,
            number=entry.number,
            agreement_number=entry.agreement_number,
            status=entry.status,
            island=entry.island,
            branch=entry.branch,
            loan_amount=entry.loan_amount,
            agreement_date=entry.agreement_date,
            borrowers=_borrower_names(entry),
        )
        for entry in recent
    ]

    return SummaryReport(
        totals=SummaryTotals(
            entries=total_count,
            amount=total_amount,
            average_amount=total_amount / total_count if total_count else ZERO,
        ),
        status_breakdown=status_breakdown,
        top_islands=top_islands[:TOP_ISLANDS_LIMIT],
        recent_entries=recent_entries,
    )


async def fetch_detailed_rows(filters: NormalizedReportFilters) -> List[DetailedRow]:
    """One row per matching entry, unpaginated, newest agreement first."""
    entries = await _fetch_entries(filters, with_borrowers=True)
    return [
        DetailedRow(
            number=entry.number,
            agreement_number=entry.agreement_number,
            borrowers=_borrower_names(entry),
            status=entry.status,
            island=entry.island,
            branch=entry.branch,
            loan_amount=entry.loan_amount,
            agreement_date=entry.agreement_date,
        )
        for entry in entries
    ]


async def fetch_custom_rows(filters: NormalizedReportFilters) -> List[BranchPerformanceRow]:
    """Branch performance: count, total and average loan amount per branch, highest total first."""
    entries = await _fetch_entries(filters)
    by_branch: Dict[str, dict] = defaultdict(lambda: {"count": 0, "amount": ZERO})
    for entry in entries:
        by_branch[entry.branch]["count"] += 1
        by_branch[entry.branch]["amount"] += entry.loan_amount

    rows = [
        BranchPerformanceRow(
            branch=branch,
            count=data["count"],
            total_amount=data["amount"],
            average_amount=data["amount"] / data["count"] if data["count"] else ZERO,
        )
        for branch, data in by_branch.items()
    ]
    rows.sort(key=lambda row: (-row.total_amount, row.branch))
    return rows


AGGREGATIONS: Dict[ReportType, Callable[[NormalizedReportFilters], Awaitable]] = {
    ReportType.SUMMARY: fetch_summary,
    ReportType.DETAILED: fetch_detailed_rows,
    ReportType.CUSTOM: fetch_custom_rows,
}


async def build_report_file(
    request: ReportRequest, now: Optional[datetime.datetime] = None
) -> ReportFile:
    """
    Builds a downloadable report.

    Filters are normalized, the aggregation for ``request.report_type`` runs,
    its result is laid out as a ReportTable and encoded in ``request.format``.

    Args:
        request: The validated report request.
        now: Timestamp used for the filename and the PDF footer. Defaults to
            the current local time.

    Returns:
        ReportFile: filename ``<prefix>-<type>-<YYYYMMDD-HHMM>.<ext>``, content
        type and the encoded bytes.
    """
    now = now or datetime.datetime.now()
    filters = normalize_filters(request.filters)

    result = await AGGREGATIONS[request.report_type](filters)
    table = TABLE_BUILDERS[request.report_type](result, ReportFormatter(currency=REPORT_CURRENCY))

    encoder = ENCODERS[request.format]
    body = encoder.encode(table, generated_at=now)

    filename = (
        f"{REPORT_FILENAME_PREFIX}-{request.report_type.value.lower()}-"
        f"{now:%Y%m%d-%H%M}.{encoder.extension}"
    )
    logger.info(f"Generated {request.report_type.value} report as {request.format.value} ({len(body)} bytes)")
    return ReportFile(filename=filename, content_type=encoder.content_type, body=body)


async def generate_preview(request: ReportRequest) -> PreviewResponse:
    """Runs the aggregation only and returns its raw result, JSON-ready."""
    filters = normalize_filters(request.filters)
    result = await AGGREGATIONS[request.report_type](filters)
    return PreviewResponse(report_type=request.report_type, data=to_jsonable_python(result))
