"""CDN and Google Drive URL helpers."""

import re
from typing import Optional

_PUBLIC_ID_PATTERN = re.compile(r"/upload/(?:v\d+/)?([^.]+)")

_DRIVE_ID_PATTERNS = (
    re.compile(r"/d/([^/]+)"),
    re.compile(r"id=([^&]+)"),
    re.compile(r"/folders/([^/]+)"),
)

DRIVE_DOWNLOAD_URL = "https://drive.google.com/uc?export=download&id={file_id}"


def extract_public_id(url: Optional[str]) -> Optional[str]:
    """Public id of a CDN asset, with or without a version segment.

    Example:
        >>> extract_public_id("https://res.cloudinary.com/demo/image/upload/v1712/briefs/logo.png")
        'briefs/logo'
    """
    if not url:
        return None
    match = _PUBLIC_ID_PATTERN.search(url)
    return match.group(1) if match else None


def optimized_url(
    url: str,
    cloud_name: Optional[str],
    width: Optional[int] = None,
    height: Optional[int] = None,
    delivery_base_url: str = "https://res.cloudinary.com",
) -> str:
    """Delivery URL resized and auto-optimized by the CDN.

    The original URL is returned unchanged when no size is requested, the
    cloud is not configured or the URL has no public id.
    """
    if not url or not cloud_name:
        return url

    public_id = extract_public_id(url)
    if not public_id:
        return url

    parts = []
    if width:
        parts.append(f"w_{width}")
    if height:
        parts.append(f"h_{height}")
    if not parts:
        return url

    transformation = ",".join(parts + ["c_fill", "q_auto", "f_auto"])
    return f"{delivery_base_url.rstrip('/')}/{cloud_name}/image/upload/{transformation}/{public_id}"


def extract_drive_file_id(url: Optional[str]) -> Optional[str]:
    """File or folder id from a Google Drive sharing URL."""
    if not url:
        return None
    for pattern in _DRIVE_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def direct_download_link(drive_url: str) -> str:
    """Turn a Drive sharing link into a direct download link; other URLs pass through."""
    file_id = extract_drive_file_id(drive_url)
    if not file_id:
        return drive_url
    return DRIVE_DOWNLOAD_URL.format(file_id=file_id)
