"""Uploaded file representation passed to the validator and the file manager."""
import mimetypes
import os
from dataclasses import dataclass

from fastapi import UploadFile


@dataclass
class UploadedFile:
    """An upload held in memory."""
    name: str
    content: bytes
    mime: str = ""

    def __post_init__(self):
        # Browsers may send a path; only the basename is kept
        self.name = os.path.basename((self.name or "").replace("\\", "/"))
        if not self.mime:
            self.mime = mimetypes.guess_type(self.name)[0] or "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        """Extension without the leading dot, lower-cased."""
        return os.path.splitext(self.name)[1].lstrip(".").lower()

    @classmethod
    async def from_upload(cls, upload: UploadFile) -> "UploadedFile":
        content = await upload.read()
        return cls(name=upload.filename or "", content=content, mime=(upload.content_type or "").lower())
