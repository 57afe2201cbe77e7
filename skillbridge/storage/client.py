"""Unsigned uploads to the Cloudinary media CDN.

Files are POSTed as multipart form data with an upload preset; the
``secure_url`` of the response is the public delivery URL stored on jobs
and submissions.
"""

import logging
from typing import Any, Dict, Optional

import requests

from skillbridge.config.models import UploadConfig
from skillbridge.logging import get_logger

from .exceptions import (
    StorageConfigurationError,
    UploadHTTPError,
    UploadResponseError,
    UploadTimeoutError,
)
from .files import format_file_size, validate_upload
from .models import UploadFile, UploadResult

logger = get_logger(__name__, component="storage")


class CloudinaryUploader:
    """Thin client for the CDN's upload endpoint.

    Attributes:
        cloud_name: CDN account name (None disables uploads)
        upload_preset: Unsigned upload preset name
        config: Upload limits, endpoints and timeout
    """

    def __init__(
        self,
        cloud_name: Optional[str],
        upload_preset: Optional[str],
        config: Optional[UploadConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.cloud_name = cloud_name
        self.upload_preset = upload_preset
        self.config = config or UploadConfig()
        self._session = session or requests.Session()

    @property
    def is_configured(self) -> bool:
        return bool(self.cloud_name and self.cloud_name != "undefined" and self.upload_preset)

    @property
    def upload_url(self) -> str:
        return f"{self.config.api_base_url}/{self.cloud_name}/upload"

    def upload(self, upload: UploadFile) -> UploadResult:
        """Validate and upload a file.

        Raises:
            StorageConfigurationError: If cloud name or preset is missing
            FileValidationError: If the file is empty, too large or of a disallowed type
            UploadHTTPError: On non-2xx status or connection failure
            UploadTimeoutError: On request timeout
            UploadResponseError: On unparseable response or missing secure_url
        """
        if not self.is_configured:
            logger.error(
                "Cloudinary upload attempted without configuration",
                extra={"event": "storage.upload.unconfigured", "file_name": upload.filename},
            )
            raise StorageConfigurationError(
                "Cloudinary not configured. Please check your environment variables."
            )

        validate_upload(upload, self.config.max_file_size_bytes, self.config.allowed_extensions)

        url = self.upload_url
        logger.info(
            f"Uploading {upload.filename} ({format_file_size(upload.size)})",
            extra={
                "event": "storage.upload.started",
                "file_name": upload.filename,
                "file_size": upload.size,
                "content_type": upload.content_type,
            },
        )

        try:
            response = self._session.post(
                url,
                data={"upload_preset": self.upload_preset},
                files={
                    "file": (
                        upload.filename,
                        upload.content,
                        upload.content_type or "application/octet-stream",
                    )
                },
                timeout=self.config.request_timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Upload to {url} timed out after {self.config.request_timeout} seconds",
                extra={"event": "storage.upload.timeout", "file_name": upload.filename},
            )
            raise UploadTimeoutError(
                f"Network error: upload timed out after {self.config.request_timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Upload request to {url} failed: {e}",
                extra={"event": "storage.upload.error", "error_type": type(e).__name__},
            )
            raise UploadHTTPError(f"Network error: {e}", status_code=0, url=url) from e

        data = self._parse_body(response)

        if response.status_code >= 400:
            message = _provider_message(data) or f"Upload failed with status {response.status_code}"
            log_level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                log_level,
                f"Cloudinary returned HTTP {response.status_code}: {message}",
                extra={
                    "event": "storage.upload.http_error",
                    "status_code": response.status_code,
                    "file_name": upload.filename,
                },
            )
            raise UploadHTTPError(message, status_code=response.status_code, url=url)

        if data is None:
            raise UploadResponseError("Upload failed - response was not valid JSON")

        secure_url = data.get("secure_url")
        if not secure_url:
            logger.error(
                "Cloudinary response had no secure_url",
                extra={"event": "storage.upload.no_url", "file_name": upload.filename},
            )
            raise UploadResponseError(_provider_message(data) or "Upload failed - no URL returned")

        result = UploadResult(
            url=secure_url,
            public_id=data.get("public_id"),
            bytes=data.get("bytes"),
            format=data.get("format"),
            resource_type=data.get("resource_type"),
        )
        logger.info(
            f"Uploaded {upload.filename}",
            extra={
                "event": "storage.upload.succeeded",
                "file_name": upload.filename,
                "public_id": result.public_id,
            },
        )
        return result

    @staticmethod
    def _parse_body(response: requests.Response) -> Optional[Dict[str, Any]]:
        try:
            data = response.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None


def _provider_message(data: Optional[Dict[str, Any]]) -> Optional[str]:
    if not data:
        return None
    error = data.get("error")
    if isinstance(error, dict):
        return error.get("message")
    return None
