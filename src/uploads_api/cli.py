# cli.py
import logging

import click

from uploads_api.config.settings import get_settings
from uploads_api.errors import FileServiceError
from uploads_api.services import FileService

# Configure logging
logger = logging.getLogger(__name__)


@click.group()
def cli():
    """CLI commands for the Uploads API server and its storage directory"""
    pass


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to UPLOADS_HOST)")
@click.option("--port", type=int, default=None, help="Bind port (defaults to UPLOADS_PORT)")
@click.option("--reload", is_flag=True, help="Restart the server when code changes")
def serve(host, port, reload):
    """Run the HTTP server"""
    import uvicorn
    from uploads_api.main import configure_logging

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "uploads_api.main:create_app",
        factory=True,
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@cli.command()
def show_config():
    """Show current configuration"""
    settings = get_settings()

    click.echo("Current Configuration:")
    click.echo(f"  App Name: {settings.app_name}")
    click.echo(f"  Storage Directory: {settings.storage_path.resolve()}")
    click.echo(f"  Max File Size: {settings.max_file_size} bytes")
    click.echo(f"  Allowed Content Types: {', '.join(settings.allowed_content_types)}")
    click.echo(f"  CORS Origins: {', '.join(settings.cors_allow_origins)}")
    click.echo(f"  Listen: {settings.host}:{settings.port}")
    click.echo(f"  Log Level: {settings.log_level}")


@cli.command()
def list_files():
    """List stored files"""
    service = FileService(get_settings())
    try:
        files = service.list_all()
    except FileServiceError as e:
        raise click.ClickException(e.message)

    for stored in files:
        click.echo(
            f"{stored.id}\t{stored.size}\t{stored.type}\t"
            f"{stored.upload_date.isoformat()}\t{stored.name}"
        )
    click.echo(f"{len(files)} file(s)")


@cli.command()
@click.argument("file_id")
def delete_file(file_id):
    """Delete a stored file by its identifier"""
    service = FileService(get_settings())
    try:
        service.delete(file_id)
    except FileServiceError as e:
        raise click.ClickException(f"{e.message}: {file_id}")
    click.echo(f"Deleted {file_id}")


if __name__ == "__main__":
    cli()
