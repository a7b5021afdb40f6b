"""
Scoring package: per-issue schedule-health metrics.
"""

from .metrics import compute_metrics

__all__ = ["compute_metrics"]
