class BatchBridgeError(Exception):
    pass


class ConfigurationError(BatchBridgeError):
    """Invalid batch size, field mapping or environment value."""


class ExtractionError(BatchBridgeError):
    """The source system could not be read; the run is aborted."""


class SubmissionError(BatchBridgeError):
    """A target channel rejected or failed to accept one batch."""
