"""Registry Reports API Schemas

This module defines the Pydantic models used by the reporting endpoints:

1. Report requests (report type, output format and raw filter values)
2. Normalized filters, the typed form every aggregation consumes
3. Aggregation results for the Summary, Detailed and Custom (branch) reports
4. The format-agnostic report table and the encoded report file

Money fields hold ``Decimal`` values in Python and are written as plain JSON
numbers, so preview payloads carry unformatted amounts."""
from pydantic import BaseModel, ConfigDict, Field, PlainSerializer
from typing import Annotated, Any, List, Optional, Union
from decimal import Decimal
from enum import Enum
import datetime

from ..entries.models import EntryStatus

Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ReportType(str, Enum):
    SUMMARY = "SUMMARY"
    DETAILED = "DETAILED"
    CUSTOM = "CUSTOM"


class ReportFormat(str, Enum):
    CSV = "CSV"
    XLSX = "XLSX"
    PDF = "PDF"


# Request. Filter values arrive as loosely typed strings from the UI filter
# chips; they are only checked for shape here and normalized later.
class ReportFilters(BaseModel):
    status: Optional[str] = None
    island: Optional[str] = None
    branch: Optional[str] = None
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    min_amount: Optional[Union[int, float, str]] = Field(None, alias="minAmount")
    max_amount: Optional[Union[int, float, str]] = Field(None, alias="maxAmount")

    model_config = ConfigDict(populate_by_name=True)


class ReportRequest(BaseModel):
    report_type: ReportType = Field(..., alias="reportType")
    format: ReportFormat
    filters: ReportFilters = Field(default_factory=ReportFilters)

    model_config = ConfigDict(populate_by_name=True)


class NormalizedReportFilters(BaseModel):
    """Every field is either absent or a valid, typed constraint."""
    status: Optional[EntryStatus] = None
    island: Optional[str] = None
    branch: Optional[str] = None
    start_date: Optional[datetime.date] = None
    end_date: Optional[datetime.date] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None

    model_config = ConfigDict(frozen=True)


# Summary report
class SummaryTotals(BaseModel):
    entries: int
    amount: Money
    average_amount: Money

class StatusBreakdownItem(BaseModel):
    status: EntryStatus
    count: int
    total_amount: Money
    percentage: float

class IslandSummary(BaseModel):
    island: str
    count: int
    total_amount: Money

class RecentEntry(BaseModel):
    public_id: str
    number: int
    agreement_number: str
    status: EntryStatus
    island: str
    branch: str
    loan_amount: Money
    agreement_date: datetime.date
    borrowers: List[str]

class SummaryReport(BaseModel):
    totals: SummaryTotals
    status_breakdown: List[StatusBreakdownItem]
    top_islands: List[IslandSummary]
    recent_entries: List[RecentEntry]


# Detailed report
class DetailedRow(BaseModel):
    number: int
    agreement_number: str
    borrowers: List[str]
    status: EntryStatus
    island: str
    branch: str
    loan_amount: Money
    agreement_date: datetime.date


# Custom (branch performance) report
class BranchPerformanceRow(BaseModel):
    branch: str
    count: int
    total_amount: Money
    average_amount: Money


class PreviewResponse(BaseModel):
    report_type: ReportType
    data: Any


# Output
class ReportTable(BaseModel):
    title: str
    columns: List[str]
    rows: List[List[str]]

    model_config = ConfigDict(frozen=True)


class ReportFile(BaseModel):
    filename: str
    content_type: str
    body: bytes
