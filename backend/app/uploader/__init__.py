"""Guest-side upload client."""
from .models import BatchState, FileUploadStatus, SelectedFile, UploadStatus
from .orchestrator import EventCodeRejected, UploadFailed, UploadOrchestrator
from .selection import SelectionError, select_files

__all__ = [
    "BatchState",
    "FileUploadStatus",
    "SelectedFile",
    "UploadStatus",
    "UploadOrchestrator",
    "UploadFailed",
    "EventCodeRejected",
    "SelectionError",
    "select_files",
]
