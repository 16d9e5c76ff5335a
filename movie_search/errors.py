class MovieSearchError(Exception):
    """
    Base class for errors raised by the search pipeline
    """


class ValidationError(MovieSearchError, ValueError):
    """
    Raised when a query or page falls outside the accepted bounds
    """


class ProviderUnavailable(MovieSearchError):
    """
    Raised when the metadata provider cannot be reached or answers badly.
    The underlying exception is kept as ``__cause__``.
    """


class HistoryRecordingError(MovieSearchError):
    """
    Raised when a search history record cannot be stored
    """
