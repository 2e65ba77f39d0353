####################################
# --- Request/response schemas --- #
####################################

from datetime import datetime, timezone
from typing import List

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_serializer,
)


def to_iso_timestamp(value: datetime) -> str:
    """Render a timestamp as UTC ISO-8601 with millisecond precision, e.g. `2024-05-01T12:00:00.000Z`."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class FileRecord(BaseModel):
    """A stored object as the file manager displays it."""
    name: str = Field(
        description="The object key.",
        json_schema_extra={"example": "1714564800123-cat.png"},
    )
    size: int = Field(description="The size of the object in bytes.")
    last_modified: datetime = Field(
        alias="lastModified",
        description="When the object was last written.",
    )
    url: str = Field(
        description="Publicly resolvable URL of the object.",
        json_schema_extra={"example": "https://files.example.com/1714564800123-cat.png"},
    )

    model_config = ConfigDict(populate_by_name=True)

    @field_serializer("last_modified")
    def serialize_last_modified(self, value: datetime) -> str:
        return to_iso_timestamp(value)


class ListFilesResponse(BaseModel):
    """Response model for `GET /v1/files/list`."""
    files: List[FileRecord]

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "files": [
                    {
                        "name": "1714564800123-cat.png",
                        "size": 20480,
                        "lastModified": "2024-05-01T12:00:00.123Z",
                        "url": "https://files.example.com/1714564800123-cat.png",
                    }
                ],
            }
        }
    )


class SuccessResponse(BaseModel):
    """Response model for `POST /v1/files/upload` and `DELETE /v1/files/delete`."""
    success: bool = True


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response raised by the file routes."""
    error: str = Field(json_schema_extra={"example": "Failed to list files"})
