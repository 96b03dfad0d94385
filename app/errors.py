"""
Error taxonomy for the attendance ledger.

Every error here is terminal for the action that raised it. Nothing retries
automatically; the operator decides whether to try again.
"""


class LedgerError(Exception):
    """Base class for all ledger errors. The message is shown to the operator."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConfigurationError(LedgerError):
    """A required endpoint location is missing or malformed."""
    status_code = 400


class ValidationError(LedgerError):
    """A local precondition failed before any network call was made."""
    status_code = 400


class TransportError(LedgerError):
    """Non-success response or network failure talking to the sheet."""
    status_code = 502


class RecordSourceError(TransportError):
    """The record source could not be read."""


class AppendTimeoutError(LedgerError):
    """The append call did not finish within its deadline."""
    status_code = 504


class ExtractionError(LedgerError):
    """Raw tabular text could not be turned into attendance records."""
    status_code = 502
