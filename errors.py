"""Error taxonomy shared by the dashboard layers."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for dashboard failures."""


class ConfigError(DashboardError):
    """Required configuration (endpoint or access token) is missing."""


class DataFormatError(DashboardError):
    """A retrieved record has a missing or unparseable timestamp."""

    def __init__(self, reason: str, record_index: int | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.record_index = record_index


class RetrievalError(DashboardError):
    """The retrieval call itself failed (network, auth or payload)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DegenerateInputWarning(UserWarning):
    """Input that yields a valid but degenerate output (NaN, empty chart)."""
