"""randrelay.core

Core primitives.

If a module needs to exist, it should probably depend only on this package.
"""

from .config import Config
from .exceptions import RandRelayError
from .nonce import NonceSequencer
from .queues import CommitQueue, PendingSubmissionQueue
from .time import unix_now, utc_now
from .types import BeaconValue, CommitRecord, PendingSubmission, SubmissionKind

__all__ = [
    "BeaconValue",
    "CommitQueue",
    "CommitRecord",
    "Config",
    "NonceSequencer",
    "PendingSubmission",
    "PendingSubmissionQueue",
    "RandRelayError",
    "SubmissionKind",
    "unix_now",
    "utc_now",
]
