"""File-name and size helpers shared by uploads and listings."""

from typing import Iterable, Optional

from .exceptions import FileValidationError
from .models import UploadFile

_SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]

_FILE_KINDS = {
    "pdf": "pdf",
    "doc": "document",
    "docx": "document",
    "xls": "spreadsheet",
    "xlsx": "spreadsheet",
    "jpg": "image",
    "jpeg": "image",
    "png": "image",
    "gif": "image",
    "zip": "archive",
    "rar": "archive",
}


def format_file_size(num_bytes: Optional[int]) -> str:
    """Human-readable size using 1024 steps and up to two decimals.

    Example:
        >>> format_file_size(1536)
        '1.5 KB'
        >>> format_file_size(0)
        '0 Bytes'
    """
    if not num_bytes:
        return "0 Bytes"
    index = 0
    while num_bytes >= 1024 ** (index + 1) and index < len(_SIZE_UNITS) - 1:
        index += 1
    value = round(num_bytes / (1024 ** index), 2)
    return f"{value:g} {_SIZE_UNITS[index]}"


def file_extension(filename: Optional[str]) -> str:
    """Lowercased text after the last dot; a name without a dot is its own extension."""
    if not filename:
        return ""
    return filename.rsplit(".", 1)[-1].lower()


def file_kind(filename: Optional[str]) -> str:
    """Coarse category used by clients to pick an icon.

    One of pdf, document, spreadsheet, image, archive or other.
    """
    return _FILE_KINDS.get(file_extension(filename), "other")


def is_cdn_url(url: Optional[str]) -> bool:
    return bool(url) and "cloudinary.com" in url


def validate_upload(
    upload: UploadFile,
    max_size_bytes: int,
    allowed_extensions: Optional[Iterable[str]] = None,
) -> None:
    """Reject empty, oversized or disallowed files before they reach the CDN.

    Raises:
        FileValidationError: With a message suitable for the end user
    """
    if not upload.filename:
        raise FileValidationError("File name is required")

    if upload.size <= 0:
        raise FileValidationError("File is empty")

    if upload.size > max_size_bytes:
        raise FileValidationError(
            f"Maximum file size is {format_file_size(max_size_bytes).replace(' ', '')}"
        )

    if allowed_extensions is not None:
        allowed = {ext.lower().lstrip(".") for ext in allowed_extensions}
        extension = file_extension(upload.filename)
        if "." not in upload.filename or extension not in allowed:
            raise FileValidationError(
                f"File type '.{extension}' is not allowed. Accepted: "
                + ", ".join(f".{ext}" for ext in sorted(allowed))
            )
