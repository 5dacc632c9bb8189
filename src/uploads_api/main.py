from textwrap import dedent
import logging

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from fastapi.middleware.cors import CORSMiddleware

from uploads_api.config.settings import Settings, get_settings
from uploads_api.errors import (
    FileServiceError,
    handle_broad_exceptions,
    handle_file_service_errors,
    handle_pydantic_validation_errors,
)
from uploads_api.routers.files import router as files_router
from uploads_api.routers.health import router as health_router
from uploads_api.services import FileService
from uploads_api.storage import LocalFileStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Set up logging
logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the server process."""
    logging.basicConfig(level=level, format=LOG_FORMAT)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="Uploads API",
        summary="Upload, list, download and delete files",
        version="v1",
        description=dedent(
            """\
        Files are stored flat under a single directory, each named after the
        identifier it was given at upload time.

        | Route | Notes |
        | --- | --- |
        | `POST /upload` | multipart, repeat the `files` field for a batch |
        | `GET /files` | every stored file |
        | `GET /files/{id}/download` | content under its original name |
        | `DELETE /files/{id}` | |
        """
        ),
        docs_url="/docs",
        generate_unique_id_function=custom_generate_unique_id,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["GET", "POST", "DELETE"],
        allow_headers=["Origin", "Content-Type"],
    )

    store = LocalFileStore(settings.storage_path)
    logger.info(f"Using storage directory {store.root.resolve()}")
    store.ensure_root()

    app.state.settings = settings
    app.state.file_service = FileService(settings, store)

    app.include_router(files_router, tags=["files"])
    app.include_router(health_router, tags=["health"])

    app.add_exception_handler(
        exc_class_or_status_code=FileServiceError,
        handler=handle_file_service_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=RequestValidationError,
        handler=handle_pydantic_validation_errors,
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

    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)
