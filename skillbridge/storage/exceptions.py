"""Exceptions raised by the media storage layer."""


class StorageError(Exception):
    """Base exception for all storage errors.

    Callers that tolerate upload failure (optional job attachments) catch this.
    """

    pass


class StorageConfigurationError(StorageError):
    """The media CDN credentials are missing."""

    pass


class FileValidationError(StorageError):
    """The file was rejected before upload (size or extension)."""

    pass


class UploadHTTPError(StorageError):
    """The CDN answered with a non-2xx status, or the request failed outright."""

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class UploadTimeoutError(StorageError):
    """The upload did not complete within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class UploadResponseError(StorageError):
    """The CDN response could not be parsed or carried no URL."""

    pass
