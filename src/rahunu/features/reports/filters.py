"""Filter normalization for registry reports.

Report filters come from UI filter chips and are only shape-checked by the
request schema. ``normalize_filters`` turns them into a
``NormalizedReportFilters`` and never raises: a value it cannot understand
(an unknown status, a blank island, ``"ALL"``, a malformed date or amount)
is dropped, which widens the report instead of failing it. Keep it that way;
tightening this into validation errors changes what users get back.
"""

import datetime
import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from tortoise.queryset import QuerySet

from ..entries.models import EntryStatus, RegistryEntry
from .schemas import NormalizedReportFilters, ReportFilters

logger = logging.getLogger(__name__)

ALL_SENTINEL = "ALL"


def _parse_status(value: Optional[str]) -> Optional[EntryStatus]:
    if not value or value == ALL_SENTINEL:
        return None
    try:
        return EntryStatus(value.strip().upper())
    except ValueError:
        return None


def _parse_choice(value: Optional[str]) -> Optional[str]:
    if value is None or value == ALL_SENTINEL or not value.strip():
        return None
    return value


def _utc_date(value: datetime.datetime) -> datetime.date:
    # Offset timestamps are compared by their UTC instant
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc)
    return value.date()


def _parse_date(value: Union[str, datetime.date, None]) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return _utc_date(value)
    if isinstance(value, datetime.date):
        return value
    if not value or not value.strip():
        return None
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    try:
        # Python < 3.11 does not accept a trailing "Z"
        return _utc_date(datetime.datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        logger.debug(f"Ignoring unparsable report date filter: {value!r}")
        return None


def _parse_amount(value: Union[int, float, str, Decimal, None]) -> Optional[Decimal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value or "_" in value:
            return None
    try:
        # str() first so 0.1 becomes Decimal("0.1"), not its binary expansion
        amount = Decimal(str(value)) if isinstance(value, float) else Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        logger.debug(f"Ignoring unparsable report amount filter: {value!r}")
        return None
    return amount if amount.is_finite() else None


def normalize_filters(raw: Optional[ReportFilters]) -> NormalizedReportFilters:
    """Coerces raw report filters into typed constraints, dropping what cannot be used."""
    if raw is None:
        return NormalizedReportFilters()
    return NormalizedReportFilters(
        status=_parse_status(raw.status),
        island=_parse_choice(raw.island),
        branch=_parse_choice(raw.branch),
        start_date=_parse_date(raw.start_date),
        end_date=_parse_date(raw.end_date),
        min_amount=_parse_amount(raw.min_amount),
        max_amount=_parse_amount(raw.max_amount),
    )


def build_entry_query(filters: NormalizedReportFilters) -> QuerySet[RegistryEntry]:
    """Base queryset shared by every report: live entries matching the filters.

    The amount range is not part of the query. SQLite keeps decimals as text,
    so the range is checked with ``amount_in_range`` on the fetched rows.
    """
    query = RegistryEntry.filter(is_deleted=False)
    if filters.status:
        query = query.filter(status=filters.status)
    if filters.island:
        query = query.filter(island=filters.island)
    if filters.branch:
        query = query.filter(branch=filters.branch)
    if filters.start_date:
        query = query.filter(agreement_date__gte=filters.start_date)
    if filters.end_date:
        query = query.filter(agreement_date__lte=filters.end_date)
    return query


def amount_in_range(amount: Decimal, filters: NormalizedReportFilters) -> bool:
    if filters.min_amount is not None and amount < filters.min_amount:
        return False
    if filters.max_amount is not None and amount > filters.max_amount:
        return False
    return True
