from pathlib import Path
from textwrap import dedent
import logging

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.routing import APIRoute
from fastapi.staticfiles import StaticFiles

from file_manager_api.errors import (
    FileManagerApiError,
    handle_broad_exceptions,
    handle_file_manager_api_errors,
    handle_validation_errors,
)
from file_manager_api.routers.files import router as files_router
from file_manager_api.routers.health import router as health_router
from file_manager_api.s3.client import build_s3_client
from file_manager_api.settings import Settings

# Set up logging
logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).parent / "static"


def configure_logging(level: str = "INFO") -> None:
    """Apply the process-wide log format once; later calls only adjust the level."""
    level = level.upper()
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger().setLevel(level)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or Settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="File Manager API",
        summary="List, upload and delete files in an S3-compatible bucket",
        version="v1",
        description=dedent(
            """\
        | Helpful Links | Notes |
        | --- | --- |
        | [File Manager UI](/manager/) | Drag-and-drop upload, image grid and delete |
        | [FastAPI Documentation](https://fastapi.tiangolo.com/) | |
        """
        ),
        docs_url="/",  # its easier to find the docs when they live on the base url
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.settings = settings
    logger.info(f"Serving bucket '{settings.s3_bucket_name}' at {settings.public_base_url}")
    app.state.s3_client = build_s3_client(settings)

    app.include_router(files_router, prefix="/v1", tags=["files"])
    app.include_router(health_router, tags=["health"])
    app.mount("/manager", StaticFiles(directory=STATIC_DIR, html=True), name="manager")

    app.add_exception_handler(
        exc_class_or_status_code=FileManagerApiError,
        handler=handle_file_manager_api_errors,
    )
    for validation_error in (RequestValidationError, pydantic.ValidationError):
        app.add_exception_handler(
            exc_class_or_status_code=validation_error,
            handler=handle_validation_errors,
        )
    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    return f"{route.tags[0]}-{route.name}"


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
