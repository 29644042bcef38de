"""Uploaded image payload."""

from dataclasses import dataclass, field
from pathlib import PurePosixPath, PureWindowsPath
from typing import Optional

from starlette.datastructures import UploadFile

from catalog_api.imaging.pillow import sniff_format


@dataclass
class ImageUpload:
    """An uploaded file held in memory.

    ``detected_format`` comes from the file's content, never from the
    client-supplied name or content type.
    """

    filename: str
    data: bytes
    content_type: Optional[str] = None
    _format: Optional[str] = field(default=None, init=False, repr=False)
    _sniffed: bool = field(default=False, init=False, repr=False)

    @classmethod
    async def from_upload(cls, upload: UploadFile) -> "ImageUpload":
        data = await upload.read()
        await upload.close()
        return cls(filename=upload.filename or "", data=data, content_type=upload.content_type)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def size_kb(self) -> float:
        return len(self.data) / 1024

    @property
    def basename(self) -> str:
        """Client filename with any directory components removed."""
        name = PureWindowsPath(PurePosixPath(self.filename).name).name
        return name or "upload"

    @property
    def detected_format(self) -> Optional[str]:
        if not self._sniffed:
            self._format = sniff_format(self.data)
            self._sniffed = True
        return self._format
