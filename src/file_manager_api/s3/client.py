"""The preconfigured connection to the S3-compatible object store."""

import logging

import boto3
from mypy_boto3_s3 import S3Client

from file_manager_api.settings import Settings

logger = logging.getLogger(__name__)


def build_s3_client(settings: Settings) -> S3Client:
    """
    Create the S3 client every route shares.

    Credentials and endpoint are only passed when configured, so boto3's own
    provider chain (env vars, shared config, instance role) applies otherwise.

    :param settings: The application settings.
    """
    client_kwargs = {
        "region_name": settings.aws_region,
    }
    if settings.aws_endpoint_url:
        client_kwargs["endpoint_url"] = settings.aws_endpoint_url
    if settings.aws_access_key_id:
        client_kwargs["aws_access_key_id"] = settings.aws_access_key_id
    if settings.aws_secret_access_key:
        client_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key

    logger.info(f"Creating S3 client for bucket '{settings.s3_bucket_name}'")
    logger.info(f"  Region: {settings.aws_region}")
    logger.info(f"  Endpoint: {settings.aws_endpoint_url or 'default'}")
    return boto3.client("s3", **client_kwargs)
