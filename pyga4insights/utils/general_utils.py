import logging
import re
from typing import Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"

RE_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def setup_logging(level: str | int = "INFO", logger_name: str = "pyga4insights") -> logging.Logger:
    """Attach a stream handler to the package logger. Unknown level names fall back to INFO."""
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO

    _logger = logging.getLogger(logger_name)
    _logger.setLevel(level)
    if not _logger.handlers:
        _handler = logging.StreamHandler()
        _handler.setFormatter(logging.Formatter(LOG_FORMAT))
        _logger.addHandler(_handler)
    return _logger


def parse_int(value: Optional[str]) -> int:
    """leading integer of a Data API value ("12.7" -> 12); 0 when there is none"""
    if value is None:
        return 0
    if _match := RE_LEADING_INT.match(str(value)):
        return int(_match.group(1))
    return 0


def parse_float(value: Optional[str]) -> float:
    """Data API value as a float ("12.7" -> 12.7); 0.0 when missing or not a number"""
    try:
        return float(value or '0')
    except ValueError:
        return 0.0


def truncate(text: str, width: int) -> str:
    if len(text) > width:
        return text[:width - 3] + '...'
    return text


def percent_change(current: float, previous: float) -> Optional[float]:
    if previous <= 0:
        return None
    return (current - previous) / previous * 100
