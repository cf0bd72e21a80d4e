"""Application exceptions.

Expected delivery failures are never raised; they are reported through
``SubmissionResult``. These exceptions cover contract violations and
malformed local input only.
"""


class IssueRelayError(Exception):
    """Base class for issuerelay errors."""


class ConfigurationError(IssueRelayError, ValueError):
    """Raised when a retry or rate-limit configuration violates its invariants."""


class PayloadFormatError(IssueRelayError, ValueError):
    """Raised when a batch file cannot be parsed into a BatchPayload."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)
