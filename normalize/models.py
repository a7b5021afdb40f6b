"""
Data models for retrieved project issues and their derived schedule metrics.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class CustomProperty:
    """A named project field value, always carried as a string."""
    name: str
    value: str


@dataclass(frozen=True)
class IssueRecord:
    """
    Normalized project item backed by an issue.
    Labels and custom properties keep the order the API returned them in.
    """
    number: int
    title: str
    closed_at: Optional[datetime] = None
    labels: Tuple[str, ...] = field(default_factory=tuple)
    custom_properties: Tuple[CustomProperty, ...] = field(default_factory=tuple)

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    def property_value(self, name: str) -> Optional[str]:
        """Return the first value recorded for a named property, or None."""
        for prop in self.custom_properties:
            if prop.name == name:
                return prop.value
        return None


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class MetricRecord:
    """
    Schedule-health metrics for one issue. Recomputed on every request, never persisted.
    """
    issue_number: int
    product: str
    title: str
    estimated_man_weeks: float
    progression: int
    start_date: datetime
    end_date: datetime
    closed_date: Optional[datetime]
    total_days: int
    days_overdue: int
    percentage_overdue: int
    success_indicator: Optional[int]
    expected_linear_progression: int

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys report consumers read."""
        return {
            'issueNumber': self.issue_number,
            'product': self.product,
            'title': self.title,
            'estimatedManWeeks': self.estimated_man_weeks,
            'progression': self.progression,
            'startDate': _iso(self.start_date),
            'endDate': _iso(self.end_date),
            'closedDate': _iso(self.closed_date),
            'totalDays': self.total_days,
            'daysOverdue': self.days_overdue,
            'percentageOverdue': self.percentage_overdue,
            'successIndicator': self.success_indicator,
            'expectedLinearProgression': self.expected_linear_progression,
        }
