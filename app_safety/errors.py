"""
Exceptions raised by the App Safety Agent.

Normalizers never raise. Only whole operations fail:
    - TransportFailure: the LLM call itself failed (network, quota, bad request).
    - SearchFailure / AnalysisFailure / ChatFailure: the matching operation failed.
    - ExtractionFailure: the analysis response held no usable JSON object.

An empty search result is NOT an error, it's a valid answer.
"""


class AppSafetyError(Exception):
    """Base class for every failure the UI is expected to handle."""


class TransportFailure(AppSafetyError):
    """The completion service could not be reached or rejected the request."""


class SearchFailure(AppSafetyError):
    """An app search request failed."""


class AnalysisFailure(AppSafetyError):
    """An app analysis request failed or could not be parsed."""


class ExtractionFailure(AnalysisFailure):
    """No JSON object could be recovered from the analysis response."""


class ChatFailure(AppSafetyError):
    """A chat request failed."""
