import logging
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import (
    APIRouter,
    Depends,
    Query,
    Request,
    status,
)
from mypy_boto3_s3 import S3Client
from starlette.datastructures import UploadFile as StarletteUploadFile

from file_manager_api.errors import (
    FAILED_TO_DELETE,
    FAILED_TO_LIST,
    FAILED_TO_UPLOAD,
    NO_FILE_PROVIDED,
    NO_FILE_SPECIFIED,
    MissingInputError,
    StorageError,
)
from file_manager_api.s3.delete_objects import delete_s3_object
from file_manager_api.s3.read_objects import (
    fetch_all_s3_objects_metadata,
    fetch_s3_objects_metadata,
)
from file_manager_api.s3.write_objects import build_upload_key, upload_s3_object
from file_manager_api.schemas import (
    ErrorResponse,
    FileRecord,
    ListFilesResponse,
    SuccessResponse,
)
from file_manager_api.settings import Settings

logger = logging.getLogger(__name__)

router = APIRouter()

PROVIDER_ERRORS = (BotoCoreError, ClientError)


def _storage(request: Request) -> tuple[Settings, S3Client]:
    return request.app.state.settings, request.app.state.s3_client


@router.get(
    "/files/list",
    response_model=ListFilesResponse,
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def list_files(request: Request) -> ListFilesResponse:
    """
    List every object in the bucket.

    Returns a single page from the provider unless `paginate_listing` is enabled.
    """
    settings, s3_client = _storage(request)
    fetch = fetch_all_s3_objects_metadata if settings.paginate_listing else fetch_s3_objects_metadata
    try:
        objects = fetch(bucket_name=settings.s3_bucket_name, s3_client=s3_client)
    except PROVIDER_ERRORS as e:
        logger.exception(f"List error: {e}")
        raise StorageError(FAILED_TO_LIST) from e

    files = [
        FileRecord(
            name=item["Key"],
            size=item["Size"],
            last_modified=item["LastModified"],
            url=settings.object_url(item["Key"]),
        )
        for item in objects
    ]
    return ListFilesResponse(files=files)


UPLOAD_REQUEST_BODY = {
    "requestBody": {
        "content": {
            "multipart/form-data": {
                "schema": {
                    "type": "object",
                    "properties": {"file": {"type": "string", "format": "binary"}},
                },
            },
        },
    },
}


async def form_file(request: Request) -> Optional[StarletteUploadFile]:
    """The `file` part of a multipart body, or None when absent or sent as a plain text field."""
    form = await request.form()
    file = form.get("file")
    if isinstance(file, StarletteUploadFile):
        return file
    if file is not None:
        logger.info("Upload rejected: form field 'file' is not a file part")
    return None


@router.post(
    "/files/upload",
    response_model=SuccessResponse,
    openapi_extra=UPLOAD_REQUEST_BODY,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def upload_file(
    request: Request,
    file: Optional[StarletteUploadFile] = Depends(form_file),
) -> SuccessResponse:
    """
    Store a single file under a new `<timestamp>-<filename>` key.

    The payload is read fully into memory and its declared content type is kept.
    """
    if file is None:
        raise MissingInputError(NO_FILE_PROVIDED)

    settings, s3_client = _storage(request)
    file_bytes = await file.read()
    object_key = build_upload_key(file.filename or "")

    try:
        upload_s3_object(
            bucket_name=settings.s3_bucket_name,
            object_key=object_key,
            file_content=file_bytes,
            content_type=file.content_type,
            s3_client=s3_client,
        )
    except PROVIDER_ERRORS as e:
        logger.exception(f"Upload error: {e}")
        raise StorageError(FAILED_TO_UPLOAD) from e

    return SuccessResponse()


@router.delete(
    "/files/delete",
    response_model=SuccessResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
)
async def delete_file(
    request: Request,
    file: Optional[str] = Query(None, description="Key of the object to delete"),
) -> SuccessResponse:
    """
    Delete one object by key.

    Deleting a key that does not exist succeeds.
    """
    if not file:
        raise MissingInputError(NO_FILE_SPECIFIED)

    settings, s3_client = _storage(request)
    try:
        delete_s3_object(
            bucket_name=settings.s3_bucket_name,
            object_key=file,
            s3_client=s3_client,
        )
    except PROVIDER_ERRORS as e:
        logger.exception(f"Delete error: {e}")
        raise StorageError(FAILED_TO_DELETE) from e

    return SuccessResponse()
