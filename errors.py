"""
Exception hierarchy for roadmap report retrieval and scoring.

    RoadmapReportError
    ├── ConfigurationError   missing credential / project id / unparseable setting
    ├── FetchError           upstream retrieval failed
    │   └── TransportError   non-success HTTP status or connection failure
    └── MissingProductError  issue carries no product label
"""

from typing import Any, Dict, Optional


class RoadmapReportError(Exception):
    """Base error; keeps a message and free-form context for logging."""

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.context: Dict[str, Any] = context
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'context': {k: str(v) for k, v in self.context.items()},
        }


class ConfigurationError(RoadmapReportError):
    pass


class FetchError(RoadmapReportError):
    pass


class TransportError(FetchError):
    """Upstream responded with a non-success status, or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, **context: Any):
        self.status_code = status_code
        super().__init__(message, status_code=status_code, **context)


class MissingProductError(RoadmapReportError):
    def __init__(self, issue_number: int, prefix: str = 'product/'):
        self.issue_number = issue_number
        super().__init__(f"Product not found in labels of issue #{issue_number} (expected a '{prefix}' label)", issue_number=issue_number, prefix=prefix)


__all__ = ['RoadmapReportError', 'ConfigurationError', 'FetchError', 'TransportError', 'MissingProductError']
