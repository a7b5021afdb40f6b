"""
Report assembly: retrieved issues -> schedule metrics.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from errors import MissingProductError
from ingest.retrieval import IssueRetrievalCoordinator
from normalize.models import IssueRecord, MetricRecord
from scoring.metrics import PRODUCT_LABEL_PREFIX, compute_metrics
from settings import Settings

logger = logging.getLogger(__name__)


class ReportResult:
    """Metric records plus the per-issue errors collected when invalid issues are skipped."""

    def __init__(self, records: List[MetricRecord], errors: Optional[List[MissingProductError]] = None):
        self.records = records
        self.errors = errors or []

    def __len__(self):
        return len(self.records)


def assemble_report(issues: Iterable[IssueRecord], now: Optional[datetime] = None, skip_invalid: bool = False, product_prefix: str = PRODUCT_LABEL_PREFIX) -> ReportResult:
    """Compute metrics for every issue.

    By default an issue without a product label aborts the whole report (MissingProductError propagates).
    With skip_invalid=True such issues are left out and their errors returned on the result.
    """
    now = now or datetime.now(timezone.utc)
    records: List[MetricRecord] = []
    errors: List[MissingProductError] = []
    for issue in issues:
        try:
            records.append(compute_metrics(issue, now, product_prefix))
        except MissingProductError as ex:
            if not skip_invalid:
                raise
            logger.warning("Skipping issue #%d: %s", issue.number, ex)
            errors.append(ex)
    return ReportResult(records, errors)


class RoadmapReport:
    """Entry point report consumers call: the configured board's issues mapped to metric records."""

    def __init__(self, settings: Settings, coordinator: Optional[IssueRetrievalCoordinator] = None, skip_invalid: bool = False):
        self.settings = settings
        self.coordinator = coordinator or IssueRetrievalCoordinator(settings)
        self.skip_invalid = skip_invalid

    def get_report_result(self, now: Optional[datetime] = None) -> ReportResult:
        issues = self.coordinator.get_issues()
        return assemble_report(issues, now=now, skip_invalid=self.skip_invalid, product_prefix=self.settings.product_prefix)

    def get_report(self, now: Optional[datetime] = None) -> List[MetricRecord]:
        return self.get_report_result(now).records
