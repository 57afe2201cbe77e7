"""Value objects for uploads."""

from dataclasses import dataclass
from typing import BinaryIO, Optional, Union


@dataclass
class UploadFile:
    """A file received from a client, ready to forward to the CDN.

    ``content`` is raw bytes or a readable binary stream positioned at the start.
    """

    filename: str
    content: Union[bytes, BinaryIO]
    size: int
    content_type: Optional[str] = None


@dataclass
class UploadResult:
    """What the CDN reports back for a stored file."""

    url: str
    public_id: Optional[str] = None
    bytes: Optional[int] = None
    format: Optional[str] = None
    resource_type: Optional[str] = None
