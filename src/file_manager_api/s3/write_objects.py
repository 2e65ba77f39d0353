"""Functions for writing objects to an S3 bucket--the "C" in CRUD."""

import logging
import time
from typing import Optional

import boto3
from mypy_boto3_s3 import S3Client

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def build_upload_key(filename: str, now_ms: Optional[int] = None) -> str:
    """
    Derive the object key for a newly uploaded file.

    Keys have the form `<millisecond-epoch-timestamp>-<original-filename>`, e.g.
    `1714564800123-cat.png`. Two uploads of the same filename within the same
    millisecond collide and the later one wins.

    :param filename: The name the client gave the file.
    :param now_ms: Milliseconds since the epoch; defaults to the current time.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    return f"{now_ms}-{filename}"


def upload_s3_object(
    bucket_name: str,
    object_key: str,
    file_content: bytes,
    content_type: Optional[str] = None,
    s3_client: Optional[S3Client] = None,
) -> None:
    """
    Upload a file to an S3 bucket.

    :param bucket_name: The name of the S3 bucket.
    :param object_key: path to the object in the S3 bucket.
    :param file_content: The content of the file to upload.
    :param content_type: The MIME type of the file, e.g. "image/png" for a PNG image.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    """
    content_type = content_type or DEFAULT_CONTENT_TYPE
    s3_client = s3_client or boto3.client("s3")
    s3_client.put_object(
        Bucket=bucket_name,
        Key=object_key,
        Body=file_content,
        ContentType=content_type,
    )
    logger.info(f"Uploaded {len(file_content)} bytes to s3://{bucket_name}/{object_key} ({content_type})")
