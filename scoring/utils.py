"""
Scoring utility functions.
Tolerant parsers and date arithmetic helpers used by scoring.metrics.
"""
import math
from datetime import datetime, timezone
from typing import Optional

from normalize.util import parse_datetime

# stands in for an unknown start/end date; arithmetic against it yields very large spans
DATE_UNKNOWN = datetime.min.replace(tzinfo=timezone.utc)

SECONDS_PER_DAY = 86400.0


def parse_int(raw: Optional[str]) -> Optional[int]:
    """Parse a whole number such as '80' or ' -5 '. Decimals and empty strings yield None."""
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


def parse_decimal(raw: Optional[str]) -> Optional[float]:
    """Parse a number that may use a decimal comma ('2,5' -> 2.5). Non-finite values yield None."""
    if raw is None:
        return None
    try:
        value = float(str(raw).strip().replace(',', '.'))
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def parse_date_or_unknown(raw: Optional[str]) -> datetime:
    parsed = parse_datetime(raw)
    return parsed if parsed is not None else DATE_UNKNOWN


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional days from earlier to later (negative when reversed)."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def clamp(value: int, lower: int, upper: int) -> int:
    return max(lower, min(upper, value))
