"""Sequential guest upload pipeline.

Each file gets its own presigned URL from the upload URL endpoint and is then
PUT straight to object storage. Files are handled strictly one after another;
a rejected event code stops the batch since every later request would be
rejected the same way.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx

from .models import BatchState, FileUploadStatus, SelectedFile, UploadStatus

logger = logging.getLogger(__name__)

UPLOAD_URL_ENDPOINT = "/api/upload-url"

StatusListener = Callable[[BatchState], None]


class UploadFailed(RuntimeError):
    """A single file could not be uploaded."""


class EventCodeRejected(UploadFailed):
    """The upload URL endpoint refused the event code."""


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return "Server error"
    if isinstance(data, dict) and data.get("error"):
        return str(data["error"])
    return f"Server error: {response.status_code}"


class UploadOrchestrator:
    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str = UPLOAD_URL_ENDPOINT,
        on_update: Optional[StatusListener] = None,
    ):
        self._client = client
        self._endpoint = endpoint
        self._on_update = on_update

    def _notify(self, state: BatchState) -> None:
        if self._on_update:
            self._on_update(state)

    async def run(self, state: BatchState) -> BatchState:
        state.reset()

        if not state.files:
            state.file_error = "Please select your photos or videos to share"
            self._notify(state)
            return state

        event_code = state.event_code.strip()
        if not event_code:
            state.event_code_error = "No event code provided"
            self._notify(state)
            return state

        state.uploading = True
        state.statuses = [FileUploadStatus(name=f.name) for f in state.files]
        self._notify(state)

        for item, status in zip(state.files, state.statuses):
            status.status = UploadStatus.UPLOADING
            self._notify(state)

            try:
                await self._upload_one(item, event_code)
            except EventCodeRejected as exc:
                status.status = UploadStatus.ERROR
                status.error = str(exc)
                state.event_code_error = "Invalid event code"
                state.uploading = False
                logger.warning("Event code rejected; stopping batch at %s", item.name)
                self._notify(state)
                return state
            except (UploadFailed, httpx.HTTPError, httpx.InvalidURL, OSError) as exc:
                status.status = UploadStatus.ERROR
                status.error = str(exc) or exc.__class__.__name__
                logger.info("Upload of %s failed: %s", item.name, status.error)
            else:
                status.status = UploadStatus.SUCCESS
                logger.info("Uploaded %s", item.name)

            self._notify(state)

        state.uploading = False
        if state.error_count:
            state.global_error = (
                f"Upload completed with {state.error_count} error(s) "
                f"and {state.success_count} successful upload(s)"
            )
        else:
            state.all_complete = True
        self._notify(state)
        return state

    async def request_upload_url(self, item: SelectedFile, event_code: str) -> str:
        response = await self._client.post(
            self._endpoint,
            json={
                "fileName": item.name,
                "contentType": item.content_type,
                "eventCode": event_code,
            },
        )

        if response.status_code == 401:
            raise EventCodeRejected("Invalid event code")
        if not response.is_success:
            raise UploadFailed(_error_message(response))

        try:
            data = response.json()
        except ValueError as exc:
            raise UploadFailed("Malformed response from upload URL service") from exc

        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise UploadFailed("No upload URL received from server")
        return url

    async def _upload_one(self, item: SelectedFile, event_code: str) -> None:
        url = await self.request_upload_url(item, event_code)
        # presigned PUTs reject chunked transfer encoding
        response = await self._client.put(
            url,
            content=item.iter_chunks(),
            headers={
                "Content-Type": item.content_type,
                "Content-Length": str(item.size),
            },
        )
        if not response.is_success:
            detail = response.text or "Network error"
            raise UploadFailed(f"Upload to storage failed ({response.status_code}): {detail}")
