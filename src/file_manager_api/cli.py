# cli.py
import asyncio
import logging
import mimetypes
from pathlib import Path

import click
import httpx

from file_manager_api.main import configure_logging
from file_manager_api.manager import (
    EMPTY_LISTING_MESSAGE,
    FileManager,
    FileManagerClient,
    format_size,
)
from file_manager_api.settings import get_settings

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8000"

api_url_option = click.option(
    "--api-url",
    envvar="FILE_MANAGER_API_URL",
    default=DEFAULT_API_URL,
    show_default=True,
    help="Base URL of a running File Manager API",
)


def _mask(value):
    if not value:
        return value
    return value[:4] + "****"


def build_http_client(api_url: str) -> httpx.AsyncClient:
    return httpx.AsyncClient(base_url=api_url, timeout=30.0)


async def _run(api_url: str, action):
    async with build_http_client(api_url) as http:
        manager = FileManager(FileManagerClient(http))
        ok = await action(manager)
        return manager, ok


def _print_listing(manager: FileManager) -> None:
    if not manager.files:
        click.echo(EMPTY_LISTING_MESSAGE)
        return
    for record in manager.files:
        click.echo(f"{record.name}\t{format_size(record.size)}\t{record.url}")


def _finish(manager: FileManager, ok: bool) -> None:
    if manager.error:
        click.echo(manager.error, err=True)
    if not ok:
        raise SystemExit(1)


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """CLI commands for serving and driving the File Manager API"""
    configure_logging(log_level or get_settings().log_level)


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  S3 Bucket: {settings.s3_bucket_name}")
    click.echo(f"  Public Base URL: {settings.public_base_url}")
    click.echo(f"  Paginate Listing: {settings.paginate_listing}")
    click.echo(f"  AWS Region: {settings.aws_region}")
    click.echo(f"  AWS Endpoint: {settings.aws_endpoint_url}")
    click.echo(f"  AWS Access Key ID: {_mask(settings.aws_access_key_id)}")
    click.echo(f"  AWS Secret Access Key: {_mask(settings.aws_secret_access_key)}")
    click.echo(f"  CORS Origins: {', '.join(settings.cors_allow_origins)}")
    click.echo(f"  Log Level: {settings.log_level}")


@cli.command()
@click.option("--host", default="0.0.0.0", show_default=True)
@click.option("--port", default=8000, show_default=True, type=int)
@click.option("--reload", is_flag=True, help="Restart on code changes")
def serve(host, port, reload):
    """Run the API and the file manager page with uvicorn"""
    import uvicorn

    logger.info(f"Starting File Manager API on {host}:{port}")
    uvicorn.run(
        "file_manager_api.main:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@cli.command(name="ls")
@api_url_option
def list_command(api_url):
    """List the files in the bucket"""
    manager, ok = asyncio.run(_run(api_url, lambda m: m.refresh()))
    if ok:
        _print_listing(manager)
    _finish(manager, ok)


@cli.command()
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--content-type", default=None, help="Defaults to a guess from the file extension")
@api_url_option
def upload(path, content_type, api_url):
    """Upload a file"""
    content_type = content_type or mimetypes.guess_type(path.name)[0]
    content = path.read_bytes()

    manager, ok = asyncio.run(
        _run(api_url, lambda m: m.upload(path.name, content, content_type))
    )
    if ok:
        click.echo(f"Uploaded {path.name} ({format_size(len(content))})")
        _print_listing(manager)
    _finish(manager, ok)


@cli.command(name="rm")
@click.argument("key")
@api_url_option
def remove(key, api_url):
    """Delete a file by its key"""
    manager, ok = asyncio.run(_run(api_url, lambda m: m.delete(key)))
    if ok:
        click.echo(f"Deleted {key}")
        _print_listing(manager)
    _finish(manager, ok)


if __name__ == "__main__":
    cli()
