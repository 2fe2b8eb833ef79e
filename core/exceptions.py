from abc import ABC


class BaseCustomException(Exception, ABC):
    """
    Base class for all custom exceptions.
    """

    def __init__(self, message: str | None = None):
        self.message = message or self.get_default_message()
        super().__init__(self.message)

    def get_default_message(self) -> str:
        """
        Return default error message.

        Returns
        -------
        str
            Default error message
        """
        return "error.unknown"

    def get_status_code(self) -> int:
        """
        Return HTTP status code for exception.

        Returns
        -------
        int
            HTTP status code
        """
        return 500


class BadRequestException(BaseCustomException):
    """Bad request exception (400)."""

    def get_status_code(self) -> int:
        return 400


class NetworkNotSupportedException(BadRequestException):
    """Network not supported exception."""

    def get_default_message(self) -> str:
        return "error.network.not_supported"


class InvalidAddressException(BadRequestException):
    """Invalid address exception."""

    def get_default_message(self) -> str:
        return "error.address.invalid"


class UpstreamFetchException(BaseCustomException):
    """Log query or batched query failed; the snapshot cannot be built (502)."""

    def get_default_message(self) -> str:
        return "error.upstream.failed"

    def get_status_code(self) -> int:
        return 502


class BatchQueryMismatchException(UpstreamFetchException):
    """Batched query response is not aligned with the query parameters."""

    def get_default_message(self) -> str:
        return "error.upstream.batch_mismatch"


class MalformedLogEntryException(BaseCustomException):
    """Transfer log with an unexpected topic/data shape."""

    def get_default_message(self) -> str:
        return "error.log.malformed"


class DecodeFailureException(BaseCustomException):
    """Byte string or address could not be decoded."""

    def get_default_message(self) -> str:
        return "error.decode.failed"
