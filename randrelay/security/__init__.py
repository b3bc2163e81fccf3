"""randrelay.security

Keep the signing key out of logs and output.
"""

from .redaction import redact_secrets, sanitize_for_log

__all__ = ["redact_secrets", "sanitize_for_log"]
