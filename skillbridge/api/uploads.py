"""Adapt multipart form files to storage uploads."""

import os
from typing import Optional

from fastapi import UploadFile as IncomingFile

from skillbridge.storage import UploadFile


def to_upload(incoming: Optional[IncomingFile]) -> Optional[UploadFile]:
    """Wrap a form file without reading it into memory; None when no file was sent."""
    if incoming is None or not incoming.filename:
        return None

    stream = incoming.file
    size = incoming.size
    if size is None:
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
    stream.seek(0)

    return UploadFile(
        filename=incoming.filename,
        content=stream,
        size=size,
        content_type=incoming.content_type,
    )
