"""
Schedule-health metrics for roadmap issues.
Derives progression, overdue figures, expected linear progression and the success indicator from an IssueRecord.
"""
from datetime import datetime
from typing import Optional
from errors import MissingProductError
from normalize.models import IssueRecord, MetricRecord
from .utils import clamp, days_between, parse_date_or_unknown, parse_decimal, parse_int

PRODUCT_LABEL_PREFIX = 'product/'

PROGRESSION_FIELD = 'Progresjon (%)'
START_FIELD = 'Start'
END_FIELD = 'Sluttdato'
ESTIMATED_MAN_WEEKS_FIELD = 'Estimerte ukesverk'

# success indicator points lost per percentage point overdue
REDUCTION_PER_PERCENT_OVERDUE = 3


def find_product(issue: IssueRecord, prefix: str = PRODUCT_LABEL_PREFIX) -> str:
    """Return the first product label with its prefix stripped."""
    for label in issue.labels:
        if label.startswith(prefix):
            return label[len(prefix):]
    raise MissingProductError(issue.number, prefix)


def _progression(issue: IssueRecord) -> int:
    value = parse_int(issue.property_value(PROGRESSION_FIELD))
    if value is None:
        # closed issues without a reported progression count as done
        return 100 if issue.is_closed else 0
    return value


def _days_overdue(issue: IssueRecord, end_date: datetime, now: datetime) -> int:
    if issue.closed_at is None:
        if end_date < now:
            return round(days_between(now, end_date))
        return 0
    if issue.closed_at > end_date:
        return round(days_between(issue.closed_at, end_date))
    return 0


def _percentage_overdue(days_overdue: int, span_days: float) -> int:
    if span_days == 0:
        return 0
    return max(round(days_overdue / span_days * 100), 0)


def _expected_linear_progression(start_date: datetime, span_days: float, now: datetime) -> int:
    if span_days == 0:
        return 100 if now >= start_date else 0
    return clamp(round(days_between(now, start_date) / span_days * 100), 0, 100)


def _success_indicator(progression: int, percentage_overdue: int, start_date: datetime, now: datetime) -> Optional[int]:
    if start_date > now:
        return None
    return clamp(progression - percentage_overdue * REDUCTION_PER_PERCENT_OVERDUE, 0, 100)


def compute_metrics(issue: IssueRecord, now: datetime, product_prefix: str = PRODUCT_LABEL_PREFIX) -> MetricRecord:
    """
    Compute the MetricRecord for a single issue relative to `now` (an aware datetime).

    Pure: the same issue and `now` always produce the same record. Missing or unparseable
    properties fall back to defaults; only a missing product label raises MissingProductError.
    """
    product = find_product(issue, product_prefix)
    progression = _progression(issue)

    start_date = parse_date_or_unknown(issue.property_value(START_FIELD))
    end_date = parse_date_or_unknown(issue.property_value(END_FIELD))
    span_days = days_between(end_date, start_date)

    days_overdue = _days_overdue(issue, end_date, now)
    percentage_overdue = _percentage_overdue(days_overdue, span_days)

    estimated_man_weeks = parse_decimal(issue.property_value(ESTIMATED_MAN_WEEKS_FIELD))

    return MetricRecord(
        issue_number=issue.number,
        product=product,
        title=issue.title,
        estimated_man_weeks=estimated_man_weeks if estimated_man_weeks is not None else 0.0,
        progression=progression,
        start_date=start_date,
        end_date=end_date,
        closed_date=issue.closed_at,
        total_days=round(span_days),
        days_overdue=days_overdue,
        percentage_overdue=percentage_overdue,
        success_indicator=_success_indicator(progression, percentage_overdue, start_date, now),
        expected_linear_progression=_expected_linear_progression(start_date, span_days, now),
    )
