# finance_tracker/core/errors.py
"""Exceptions raised by finance_tracker.

Validation errors are raised before anything reaches the storage layer.
Remote errors wrap whatever the storage layer rejected.
"""


class FinanceTrackerError(Exception):
    """Base class for all finance_tracker errors."""


class ValidationError(FinanceTrackerError, ValueError):
    """Input rejected locally; never sent to storage."""


class InvalidAmount(ValidationError):
    pass


class InvalidExchangeRate(ValidationError):
    pass


class InvalidCurrencyCode(ValidationError):
    pass


class InvalidDate(ValidationError):
    pass


class RemoteOperationFailed(FinanceTrackerError, RuntimeError):
    """A storage call (create/read/update/delete) was rejected."""


class ActorUnavailable(FinanceTrackerError, RuntimeError):
    """No storage backend or principal configured yet."""
