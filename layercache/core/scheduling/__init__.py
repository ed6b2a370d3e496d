"""
Scheduling Module

Time source and periodic job runner shared by the cache layers.

Components:
-----------
- **clock.py**: Clock protocol, SystemClock, ManualClock (virtual time for tests)
- **scheduler.py**: TaskScheduler with independent named intervals
"""

from layercache.core.scheduling.clock import Clock, ManualClock, SystemClock
from layercache.core.scheduling.scheduler import PeriodicJob, TaskScheduler

__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "PeriodicJob",
    "TaskScheduler",
]
