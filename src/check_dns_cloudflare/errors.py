from __future__ import annotations

from typing import Any


class CheckError(Exception):
    """Base error for everything the check can raise."""


class ConfigurationError(CheckError):
    """Unusable cache location, missing credentials or conflicting options."""


class CacheDecodeError(CheckError):
    """A cached entry is missing, expired or could not be decoded."""


class UpstreamError(CheckError):
    """A Cloudflare API call failed or timed out."""


class ResolutionError(CheckError):
    """The external resolver failed, is missing, or timed out."""


class ReconciliationFailure(CheckError):
    """
    Observed DNS state does not match what was expected.

    This is a check failure rather than a fault: the result that produced it is
    attached so callers can still render every finding.
    """

    def __init__(self, message: str, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
