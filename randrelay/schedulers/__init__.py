"""randrelay.schedulers

The three periodic tasks: beacon poll, commit, reveal.
"""

from .base import PeriodicTask, SchedulerContext
from .beacon import RandomnessBeaconPoller
from .commit import CommitScheduler
from .reveal import RevealScheduler

__all__ = [
    "CommitScheduler",
    "PeriodicTask",
    "RandomnessBeaconPoller",
    "RevealScheduler",
    "SchedulerContext",
]
