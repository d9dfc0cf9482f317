"""
errors.py
---------
Exception and warning types raised across the revenue-analytics pipeline.

Fatal errors (``AuthorizationError``, ``LedgerUnavailableError``) abort a
run.  ``InsufficientDataError`` is caught by the engine and degrades the
forecast section only.  ``MalformedRecordWarning`` is never raised: bad
ledger rows are dropped and counted.
"""


class RevenueAnalyticsError(Exception):
    """Base class for every error raised by this project."""


class AuthorizationError(RevenueAnalyticsError):
    """The requester does not hold an administrative role."""


class LedgerUnavailableError(RevenueAnalyticsError):
    """The ledger source could not return a complete snapshot."""


class InsufficientDataError(RevenueAnalyticsError):
    """Too few trailing MRR points to fit the regression."""


class MalformedRecordWarning(UserWarning):
    """Ledger rows were skipped or zeroed during normalisation."""
