"""
Error taxonomy for the reporting and classification pipeline
"""


class ReportingError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(ReportingError):
    """Missing or invalid run settings. Fatal for the run."""


class SinkError(ReportingError):
    """A spreadsheet tab could not be read, created or written."""


class ClassificationError(ReportingError):
    """A single classification attempt failed. Retryable.

    ``usage`` carries the tokens consumed before the failure, when the
    provider answered but its text could not be used.
    """

    def __init__(self, message: str, usage=None):
        super().__init__(message)
        self.usage = usage


class ProviderError(ClassificationError):
    """Non-2xx response from a classification endpoint."""

    def __init__(self, provider: str, status_code: int, body: str):
        super().__init__(f"{provider} API error ({status_code}): {body}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


class ParseError(ClassificationError):
    """Model output did not contain a usable JSON object."""


class InvalidCategoryError(ClassificationError):
    """Parsed category is missing, not a string, or outside the active set."""
