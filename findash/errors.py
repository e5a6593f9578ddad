from __future__ import annotations


class FinDashError(Exception):
    """Base class for errors raised by the store and ingestion layers."""


class ValidationError(FinDashError):
    """A record is missing a required field or carries a wrongly typed value.

    Raised before anything is written, so a rejected record never leaves a
    partial row behind.
    """

    def __init__(self, domain: str, reasons: list[str]):
        self.domain = domain
        self.reasons = list(reasons)
        super().__init__(f"{domain}: " + "; ".join(self.reasons))


class SourceUnavailable(FinDashError):
    """A record source could not produce records (network, credentials, file, timeout)."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class StoreError(FinDashError):
    """The underlying database rejected an operation."""
