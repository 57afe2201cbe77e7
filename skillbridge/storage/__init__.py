"""Media storage: CDN uploads plus URL and file helpers."""

from .client import CloudinaryUploader
from .exceptions import (
    FileValidationError,
    StorageConfigurationError,
    StorageError,
    UploadHTTPError,
    UploadResponseError,
    UploadTimeoutError,
)
from .files import file_extension, file_kind, format_file_size, is_cdn_url, validate_upload
from .models import UploadFile, UploadResult
from .urls import direct_download_link, extract_drive_file_id, extract_public_id, optimized_url

__all__ = [
    # Client
    "CloudinaryUploader",
    "UploadFile",
    "UploadResult",
    # Exceptions
    "StorageError",
    "StorageConfigurationError",
    "FileValidationError",
    "UploadHTTPError",
    "UploadTimeoutError",
    "UploadResponseError",
    # Helpers
    "format_file_size",
    "file_extension",
    "file_kind",
    "is_cdn_url",
    "validate_upload",
    "extract_public_id",
    "optimized_url",
    "extract_drive_file_id",
    "direct_download_link",
]
