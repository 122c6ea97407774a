"""
Guarded arithmetic - NaN and Infinity never reach game state
"""

import logging
import math
from typing import Any

logger = logging.getLogger(__name__)


def safe_number(value: Any, default: float = 0) -> float:
    """Coerce to a finite number, falling back to default"""
    if value is None or value == "" or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric value in arithmetic: %r", value)
        return default
    if not math.isfinite(number):
        logger.warning("NaN or infinite value in arithmetic: %r", value)
        return default
    return number


def safe_division(numerator: Any, denominator: Any, default: float = 0) -> float:
    num = safe_number(numerator, 0)
    den = safe_number(denominator, 0)
    if den == 0:
        return default
    result = num / den
    return result if math.isfinite(result) else default


def safe_percentage(completed: Any, total: Any, default: int = 0) -> int:
    """Rounded percentage clamped to [0, 100]"""
    total_num = safe_number(total, 0)
    if total_num == 0:
        return default
    percentage = safe_division(completed, total_num) * 100
    # halves round up
    return max(0, min(100, int(math.floor(percentage + 0.5))))
