"""randrelay: drand and commit-reveal randomness, relayed on-chain.

Two feeds, one sending account, one nonce.
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "1.0.0"
