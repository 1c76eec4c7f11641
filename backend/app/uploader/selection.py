"""Client-side checks on the files a guest picks."""
from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Iterable

from app.schemas.uploads import is_allowed_media_type

from .models import SelectedFile

MAX_FILES_PER_BATCH = 50
DEFAULT_CONTENT_TYPE = "application/octet-stream"


class SelectionError(ValueError):
    """Raised when a file selection cannot be uploaded."""


def guess_content_type(path: Path) -> str:
    content_type, _ = mimetypes.guess_type(path.name)
    return content_type or DEFAULT_CONTENT_TYPE


def select_files(paths: Iterable[Path | str]) -> list[SelectedFile]:
    selected: list[SelectedFile] = []
    missing: list[str] = []
    for raw in paths:
        path = Path(raw)
        if not path.is_file():
            missing.append(str(raw))
            continue
        selected.append(SelectedFile(name=path.name, content_type=guess_content_type(path), path=path))

    if missing:
        raise SelectionError(f"File(s) not found: {', '.join(missing)}")

    invalid = [f.name for f in selected if not is_allowed_media_type(f.content_type)]
    if invalid:
        raise SelectionError(
            f"Invalid file type(s): {', '.join(invalid)}. Only images and videos are allowed."
        )

    if len(selected) > MAX_FILES_PER_BATCH:
        raise SelectionError(f"Maximum {MAX_FILES_PER_BATCH} files can be uploaded at once")

    return selected
