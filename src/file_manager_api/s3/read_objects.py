"""Functions for reading objects from an S3 bucket--the "R" in CRUD."""

import logging
from typing import Optional

import boto3
from mypy_boto3_s3 import S3Client
from mypy_boto3_s3.type_defs import ObjectTypeDef

logger = logging.getLogger(__name__)


def fetch_s3_objects_metadata(
    bucket_name: str,
    s3_client: Optional[S3Client] = None,
) -> list[ObjectTypeDef]:
    """
    Fetch metadata of the objects in an S3 bucket with a single request.

    Only the first page is returned: buckets holding more keys than the
    provider's page limit (1000 for S3 and R2) are truncated.

    :param bucket_name: The name of the S3 bucket.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    :return: The `Contents` entries of the response, empty for an empty bucket.
    """
    s3_client = s3_client or boto3.client("s3")
    response = s3_client.list_objects_v2(Bucket=bucket_name)
    if response.get("IsTruncated"):
        logger.warning(f"Listing of bucket '{bucket_name}' was truncated after {response.get('KeyCount')} keys")
    return response.get("Contents", [])


def fetch_all_s3_objects_metadata(
    bucket_name: str,
    s3_client: Optional[S3Client] = None,
) -> list[ObjectTypeDef]:
    """
    Fetch metadata of every object in an S3 bucket, following continuation tokens.

    :param bucket_name: The name of the S3 bucket.
    :param s3_client: An optional boto3 S3 client. If not provided, one will be created.
    """
    s3_client = s3_client or boto3.client("s3")
    paginator = s3_client.get_paginator("list_objects_v2")
    objects: list[ObjectTypeDef] = []
    for page in paginator.paginate(Bucket=bucket_name):
        objects.extend(page.get("Contents", []))
    return objects
