"""
File manager controller.

Drives the list/upload/delete endpoints the same way the browser page in
`static/` does, with each operation category tracked as an explicit state:

    Idle --action--> InFlight --success--> Idle
                         |
                         +----failure--> Failed(message) --action--> InFlight

Uploads and deletes always re-fetch the listing when they finish, whatever
their outcome. A single `error` banner holds the latest failure message.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Union

import httpx

from file_manager_api.schemas import FileRecord, ListFilesResponse

logger = logging.getLogger(__name__)

EMPTY_LISTING_MESSAGE = "No images uploaded yet"


class OperationCategory(str, Enum):
    LIST = "list"
    UPLOAD = "upload"
    DELETE = "delete"


class UploadSource(str, Enum):
    """Where an upload came from; only dropped files are filtered to images."""
    DROP = "drop"
    BROWSE = "browse"


@dataclass(frozen=True)
class Idle:
    kind: str = field(default="idle", init=False)


@dataclass(frozen=True)
class InFlight:
    kind: str = field(default="inFlight", init=False)


@dataclass(frozen=True)
class Failed:
    message: str
    kind: str = field(default="error", init=False)


OperationState = Union[Idle, InFlight, Failed]

IDLE = Idle()
IN_FLIGHT = InFlight()

ERROR_MESSAGES: Dict[OperationCategory, str] = {
    OperationCategory.LIST: "Failed to fetch files",
    OperationCategory.UPLOAD: "Failed to upload file",
    OperationCategory.DELETE: "Failed to delete file",
}


def format_size(size: int) -> str:
    """Human readable size as shown under each image, e.g. `20.0 KB`."""
    return f"{size / 1024:.1f} KB"


def is_image(content_type: Optional[str]) -> bool:
    return bool(content_type) and content_type.startswith("image/")


class FileManagerClientError(Exception):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: str):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class FileManagerClient:
    """HTTP binding for the three file endpoints."""

    LIST_PATH = "/v1/files/list"
    UPLOAD_PATH = "/v1/files/upload"
    DELETE_PATH = "/v1/files/delete"

    def __init__(self, http: httpx.AsyncClient):
        self.http = http

    @staticmethod
    def _check(response: httpx.Response) -> None:
        if response.is_success:
            return
        message = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = body["error"]
        raise FileManagerClientError(response.status_code, message)

    async def list_files(self) -> List[FileRecord]:
        response = await self.http.get(self.LIST_PATH)
        self._check(response)
        return ListFilesResponse.model_validate(response.json()).files

    async def upload_file(self, filename: str, content: bytes, content_type: Optional[str] = None) -> None:
        files = {"file": (filename, content, content_type or "application/octet-stream")}
        response = await self.http.post(self.UPLOAD_PATH, files=files)
        self._check(response)

    async def delete_file(self, name: str) -> None:
        response = await self.http.delete(self.DELETE_PATH, params={"file": name})
        self._check(response)


# Non-JSON or malformed bodies surface as ValueError (JSONDecodeError, pydantic.ValidationError)
CLIENT_ERRORS = (httpx.HTTPError, FileManagerClientError, ValueError)


class FileManager:
    """Client-side state for one file manager view."""

    def __init__(self, client: FileManagerClient):
        self.client = client
        self.files: List[FileRecord] = []
        self.error: Optional[str] = None
        self.states: Dict[OperationCategory, OperationState] = {
            category: IDLE for category in OperationCategory
        }

    def state(self, category: OperationCategory) -> OperationState:
        return self.states[category]

    def is_in_flight(self, category: OperationCategory) -> bool:
        return isinstance(self.states[category], InFlight)

    @property
    def is_empty(self) -> bool:
        """True only once a listing has succeeded and returned nothing."""
        return not self.files and self.states[OperationCategory.LIST] == IDLE

    def _fail(self, category: OperationCategory) -> None:
        message = ERROR_MESSAGES[category]
        self.states[category] = Failed(message)
        self.error = message

    async def refresh(self) -> bool:
        """Re-fetch the listing; the files shown are only replaced on success."""
        self.states[OperationCategory.LIST] = IN_FLIGHT
        files = None
        try:
            files = await self.client.list_files()
        except CLIENT_ERRORS as e:
            logger.warning(f"Listing files failed: {e}")
        finally:
            if files is None:
                self._fail(OperationCategory.LIST)

        if files is None:
            return False
        self.files = files
        self.error = None
        self.states[OperationCategory.LIST] = IDLE
        return True

    async def _mutate(self, category: OperationCategory, send, description: str) -> bool:
        # The follow-up refresh and the final transition run whatever `send` raised.
        self.states[category] = IN_FLIGHT
        self.error = None
        succeeded = False
        try:
            await send()
            succeeded = True
        except CLIENT_ERRORS as e:
            logger.warning(f"{description} failed: {e}")
        finally:
            try:
                await self.refresh()
            finally:
                if succeeded:
                    self.states[category] = IDLE
                else:
                    self._fail(category)
        return succeeded

    async def upload(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        source: UploadSource = UploadSource.BROWSE,
    ) -> bool:
        """
        Upload one file, then refresh.

        Returns False without sending anything when a dropped file is not an
        image or another upload is still in flight.
        """
        if source is UploadSource.DROP and not is_image(content_type):
            logger.info(f"Ignoring dropped file '{filename}' of type {content_type!r}")
            return False
        if self.is_in_flight(OperationCategory.UPLOAD):
            return False

        return await self._mutate(
            OperationCategory.UPLOAD,
            lambda: self.client.upload_file(filename, content, content_type),
            f"Uploading '{filename}'",
        )

    async def delete(self, name: str) -> bool:
        """
        Delete one file, then refresh.

        Every delete shares one lock: while any delete is in flight, further
        deletes are refused without a request.
        """
        if self.is_in_flight(OperationCategory.DELETE):
            return False

        return await self._mutate(
            OperationCategory.DELETE,
            lambda: self.client.delete_file(name),
            f"Deleting '{name}'",
        )
