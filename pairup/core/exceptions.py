"""Pairing analysis exceptions.

Raised by the Gemini client and converted to HTTP responses by the
analysis router. Each failure kind maps to its own status so the frontend
can tell a timeout (offer "try again") from bad model output.
"""


class AnalysisError(Exception):
    """Base exception for pairing analysis errors."""


class AnalysisConfigurationError(AnalysisError):
    """Raised when no usable Gemini API key is configured."""


class AnalysisTimeoutError(AnalysisError):
    """Raised when the model call exceeds the caller's timeout."""


class AnalysisServiceError(AnalysisError):
    """Raised when the Gemini request itself fails."""


class AnalysisParseError(AnalysisError):
    """Raised when the model output is not the expected JSON object.

    The message always carries a snippet of the raw response.
    """

    def __init__(self, message: str, raw_text: str):
        super().__init__(message)
        self.raw_text = raw_text
