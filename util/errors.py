# util/errors.py
from fastapi import HTTPException, status


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self, message: str, http_status: int = status.HTTP_400_BAD_REQUEST
    ) -> None:
        super().__init__(status_code=http_status, detail=message)


class HistoryError(Exception):
    """
    Base for every failure of the name history store.

    The message is display-ready; the HTTP layer surfaces it verbatim.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigError(HistoryError):
    """Missing or invalid backend settings."""


class StorageError(HistoryError):
    """Local file read/write failure."""


class NetworkError(HistoryError):
    """Transport failure, timeout or non-success response from a remote backend."""


class FormatError(HistoryError):
    """
    Persisted data cannot be trusted: corruption or a changed name universe.
    Never retried; an operator has to reset the store.
    """


class BlobTooShortError(FormatError):
    pass


class BadMagicError(FormatError):
    pass


class UnsupportedVersionError(FormatError):
    pass


class UniverseSizeMismatchError(FormatError):
    pass


class UniverseFingerprintMismatchError(FormatError):
    pass


class RawLengthMismatchError(FormatError):
    pass


class CompressedLengthMismatchError(FormatError):
    pass


class DecompressedLengthMismatchError(FormatError):
    pass


class TextEncodingError(FormatError):
    """Base64 text transport could not be decoded."""


class Base64LengthError(TextEncodingError):
    pass


class Base64AlphabetError(TextEncodingError):
    pass


class Base64PaddingError(TextEncodingError):
    pass


class CompressionError(HistoryError):
    pass


class ConflictError(HistoryError):
    """A concurrent writer changed the backend state. Only this one is retried."""


class ExhaustionError(HistoryError):
    def __init__(self, remaining: int) -> None:
        super().__init__(f"not enough unused names remaining ({remaining} left)")
        self.remaining = remaining


class RetryExhaustedError(HistoryError):
    pass


class InvalidCountError(HistoryError):
    pass


class NotReadyError(HistoryError):
    pass


class InternalConsistencyError(HistoryError):
    pass


def http_status_for(err: HistoryError) -> int:
    # Caller mistakes are 400; everything else is the server's problem.
    if isinstance(err, (InvalidCountError, ExhaustionError)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR
