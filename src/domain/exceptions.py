class CultureScoreError(Exception):
    """Base class for culture analytics errors."""


class GenerationFailedError(CultureScoreError):
    """
    A hard failure while generating a report.
    The pipeline aborts and nothing is persisted.
    """


class UpstreamUnavailableError(GenerationFailedError):
    """The completion API failed at the transport or HTTP-status level."""


class MalformedAIOutputError(GenerationFailedError):
    """The completion text was not parseable JSON after fence stripping."""

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteAIOutputError(GenerationFailedError):
    """The parsed JSON lacks one or more required top-level sections."""

    def __init__(self, message: str, missing_keys: list):
        super().__init__(message)
        self.missing_keys = missing_keys


class InvalidAIOutputError(GenerationFailedError):
    """The parsed JSON has every section but cannot be coerced into a report."""

    def __init__(self, message: str, details: str):
        super().__init__(message)
        self.details = details


class NoReportAvailableError(CultureScoreError):
    """No culture score report has been generated yet."""
