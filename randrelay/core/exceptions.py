"""randrelay.core.exceptions

Errors are part of the interface.

Tests assert on the error kind, never on log text.
"""

from __future__ import annotations


class RandRelayError(Exception):
    """Base exception for randrelay."""


class ConfigError(RandRelayError):
    """Configuration is missing, invalid, or inconsistent."""


class BeaconError(RandRelayError):
    """Beacon fetch failed. Swallowed per tick; the next tick retries."""


class BeaconNetworkError(BeaconError):
    """Beacon endpoint unreachable, timed out, or answered with an error status."""


class BeaconParseError(BeaconError):
    """Beacon answered, but not with something we can submit."""


class ChainError(RandRelayError):
    """JSON-RPC level failures talking to the chain."""


class SubmissionError(ChainError):
    """A transaction was not accepted by the node."""


class NonceError(ChainError):
    """Nonce sequencer misuse: uninitialized, or release out of order."""


class NonceSyncError(NonceError):
    """Could not read the account's transaction count. Fatal at startup."""


class StaleSubmissionError(ChainError):
    """The call's deadline passed while it waited for the nonce lock. Never sent."""
