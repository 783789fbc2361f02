"""Reader configuration, time index and case facade."""

from .config import ReaderConfig
from .times import TimeEntry, TimeIndex, parse_time_name
from .case import FoamCase

__all__ = [
    'FoamCase',
    'ReaderConfig',
    'TimeEntry',
    'TimeIndex',
    'parse_time_name',
]
