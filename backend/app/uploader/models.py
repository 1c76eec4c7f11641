"""State carried through one guest upload batch."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import AsyncIterator, Optional

CHUNK_SIZE = 64 * 1024


class UploadStatus(str, Enum):
    """Per-file upload state: pending -> uploading -> success | error."""

    PENDING = "pending"
    UPLOADING = "uploading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class SelectedFile:
    """A file picked by the guest, with the MIME type sent to storage."""

    name: str
    content_type: str
    path: Path

    @property
    def size(self) -> int:
        return self.path.stat().st_size

    async def iter_chunks(self, chunk_size: int = CHUNK_SIZE) -> AsyncIterator[bytes]:
        f = await asyncio.to_thread(self.path.open, "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(f.read, chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            f.close()


@dataclass
class FileUploadStatus:
    name: str
    status: UploadStatus = UploadStatus.PENDING
    error: Optional[str] = None


@dataclass
class BatchState:
    """Mutable batch state shared with whatever renders progress."""

    event_code: str
    files: list[SelectedFile] = field(default_factory=list)
    statuses: list[FileUploadStatus] = field(default_factory=list)
    uploading: bool = False
    all_complete: bool = False
    global_error: Optional[str] = None
    event_code_error: Optional[str] = None
    file_error: Optional[str] = None

    @property
    def success_count(self) -> int:
        return sum(1 for s in self.statuses if s.status is UploadStatus.SUCCESS)

    @property
    def error_count(self) -> int:
        return sum(1 for s in self.statuses if s.status is UploadStatus.ERROR)

    def reset(self) -> None:
        self.statuses = []
        self.uploading = False
        self.all_complete = False
        self.global_error = None
        self.event_code_error = None
        self.file_error = None
