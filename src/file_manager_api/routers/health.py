import logging

from botocore.exceptions import BotoCoreError, ClientError
from fastapi import APIRouter, Request

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status and bucket reachability.

    Returns the status of the API and the object store along with the bucket name.
    """
    settings = request.app.state.settings
    s3_client = request.app.state.s3_client

    health_status = {
        "status": "ok",
        "bucket": settings.s3_bucket_name,
        "components": {
            "api": "ready",
            "storage": "initializing"
        },
        "ready": False
    }

    try:
        s3_client.head_bucket(Bucket=settings.s3_bucket_name)
        health_status["components"]["storage"] = "ready"
    except (BotoCoreError, ClientError) as e:
        logger.warning(f"Bucket '{settings.s3_bucket_name}' is not reachable: {e}")
        health_status["components"]["storage"] = "error"
        health_status["status"] = "degraded"

    health_status["ready"] = all(
        state == "ready" for state in health_status["components"].values()
    )
    return health_status
