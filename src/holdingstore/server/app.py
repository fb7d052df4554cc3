"""FastAPI application exposing holding storage over HTTP.

Request surface::

    GET  /                          list every holding UUID
    GET  /version                   server version, free space and shards
    GET  /{uuid}/                   holding summary
    GET  /{uuid}/music/{path}       track content
    GET  /{uuid}/albumart           album art content
    PUT  /{uuid}/music/{path}       upload a track (auth)
    PUT  /{uuid}/albumart           upload album art (auth)
    PUT  /{uuid}/lock               lock the holding (auth)
"""

import logging
from pathlib import Path

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse, PlainTextResponse, Response
from fastapi.security import HTTPBasicCredentials
from starlette.exceptions import HTTPException as StarletteHTTPException

from holdingstore import __version__
from holdingstore.config import ServerConfig
from holdingstore.exceptions import (
    HoldingNotFoundError,
    HoldingStoreError,
    InvalidFormatError,
    LockedError,
    StorageIOError,
    TraversalViolationError,
)
from holdingstore.locking import LockManager
from holdingstore.logging import get_logger
from holdingstore.paths import PathResolver
from holdingstore.server.auth import basic_auth, credentials_match
from holdingstore.storage import HoldingEnumerator, ObjectStore
from holdingstore.utils import get_server_info

# Path traversal maps to 401
ERROR_STATUS: dict[type[HoldingStoreError], int] = {
    InvalidFormatError: status.HTTP_400_BAD_REQUEST,
    TraversalViolationError: status.HTTP_401_UNAUTHORIZED,
    LockedError: status.HTTP_423_LOCKED,
    HoldingNotFoundError: status.HTTP_404_NOT_FOUND,
    StorageIOError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}

IMAGE_SIGNATURES = (
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"\x89PNG\r\n\x1a\n", "image/png"),
    (b"GIF87a", "image/gif"),
    (b"GIF89a", "image/gif"),
)
SNIFF_LENGTH = 16

UNSUPPORTED_METHODS = ["POST", "DELETE", "PATCH", "OPTIONS"]


def status_for_error(error: HoldingStoreError) -> int:
    """Return the HTTP status code for a storage error."""
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def sniff_media_type(path: Path) -> str:
    """Guess an image media type from the first bytes of ``path``."""
    with path.open("rb") as f:
        head = f.read(SNIFF_LENGTH)
    for signature, media_type in IMAGE_SIGNATURES:
        if head.startswith(signature):
            return media_type
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return "image/webp"
    return "application/octet-stream"


def uploaded_response(written: int) -> PlainTextResponse:
    """Build the plain text acknowledgement for an upload."""
    return PlainTextResponse(f"uploaded: {written} bytes\n")


def invalid_url_response(object_store: ObjectStore, uuid: str) -> Response:
    """Answer a GET for a sub-resource that does not exist.

    A missing holding still takes precedence over the bad URL.
    """
    if not object_store.holding_exists(uuid):
        error_msg = f"Holding not found: {uuid}"
        raise HoldingNotFoundError(error_msg)
    return PlainTextResponse("invalid url\n", status_code=status.HTTP_400_BAD_REQUEST)


def create_app(config: ServerConfig, logger: logging.Logger | None = None) -> FastAPI:
    """Build the HTTP application for one library.

    Args:
        config: Server configuration
        logger: Logger for request errors and storage events

    Returns:
        Configured FastAPI application

    """
    logger = logger or get_logger("holdingstore")

    resolver = PathResolver(config.library_path)
    lock_manager = LockManager(resolver, logger)
    object_store = ObjectStore(resolver, lock_manager, logger)
    enumerator = HoldingEnumerator(resolver, lock_manager, object_store, logger)

    app = FastAPI(
        title="HoldingStore",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.object_store = object_store
    app.state.enumerator = enumerator
    app.state.lock_manager = lock_manager

    @app.exception_handler(HoldingStoreError)
    async def handle_storage_error(request: Request, exc: HoldingStoreError) -> Response:
        status_code = status_for_error(exc)
        server_side = status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR
        logger.log(
            logging.ERROR if server_side else logging.WARNING,
            f"{request.method} {request.url.path} failed: {exc}",
        )
        return PlainTextResponse(f"{exc}\n", status_code=status_code)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
        return PlainTextResponse(
            f"{exc.detail}\n" if exc.detail else "",
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    def require_api_key(
        request: Request,
        credentials: HTTPBasicCredentials | None = Depends(basic_auth),
    ) -> None:
        if not credentials_match(credentials, config):
            user = credentials.username if credentials else ""
            logger.warning(f"Authentication failure for {user} on {request.url.path}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="API key is incorrect",
            )

    @app.api_route("/", methods=["GET", "HEAD", "PUT", *UNSUPPORTED_METHODS])
    def list_all() -> list[str]:
        return enumerator.list_all_uuids()

    @app.api_route("/version", methods=["GET", "HEAD"])
    def version() -> JSONResponse:
        return JSONResponse(get_server_info(config, logger))

    @app.api_route("/version", methods=["PUT", *UNSUPPORTED_METHODS])
    def version_not_allowed() -> Response:
        return PlainTextResponse(
            "Only GET is allowed\n",
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
        )

    @app.get("/favicon.ico")
    def favicon() -> Response:
        # Browsers ask for this constantly; answer without logging
        return Response(status_code=status.HTTP_404_NOT_FOUND)

    @app.get("/{uuid}")
    @app.get("/{uuid}/")
    def describe_holding(uuid: str) -> JSONResponse:
        summary = enumerator.describe_holding(uuid.lower())
        return JSONResponse(summary.to_dict())

    @app.api_route("/{uuid}/music/{relative_path:path}", methods=["GET", "HEAD"])
    def get_track(uuid: str, relative_path: str) -> Response:
        uuid = uuid.lower()
        if not relative_path:
            return invalid_url_response(object_store, uuid)
        return FileResponse(object_store.get_track(uuid, relative_path))

    @app.api_route("/{uuid}/albumart", methods=["GET", "HEAD"])
    @app.api_route("/{uuid}/albumart/{rest:path}", methods=["GET", "HEAD"])
    def get_artwork(uuid: str) -> Response:
        artwork = object_store.get_artwork(uuid.lower())
        return FileResponse(artwork, media_type=sniff_media_type(artwork))

    @app.api_route("/{uuid}/{rest:path}", methods=["GET", "HEAD"])
    def invalid_url(uuid: str, rest: str) -> Response:
        return invalid_url_response(object_store, uuid.lower())

    @app.put("/{uuid}/lock", dependencies=[Depends(require_api_key)])
    @app.put("/{uuid}/lock/{rest:path}", dependencies=[Depends(require_api_key)])
    async def create_lock(uuid: str) -> Response:
        await run_in_threadpool(lock_manager.lock, uuid.lower())
        return PlainTextResponse("Created lock\n")

    @app.put("/{uuid}/music/{relative_path:path}", dependencies=[Depends(require_api_key)])
    async def upload_track(uuid: str, relative_path: str, request: Request) -> Response:
        content = await request.body()
        written = await run_in_threadpool(
            object_store.put_track,
            uuid.lower(),
            relative_path,
            content,
        )
        return uploaded_response(written)

    @app.put("/{uuid}/albumart", dependencies=[Depends(require_api_key)])
    @app.put("/{uuid}/albumart/{rest:path}", dependencies=[Depends(require_api_key)])
    async def upload_artwork(uuid: str, request: Request) -> Response:
        content = await request.body()
        written = await run_in_threadpool(object_store.put_artwork, uuid.lower(), content)
        return uploaded_response(written)

    @app.put("/{uuid}", dependencies=[Depends(require_api_key)])
    def put_without_target(uuid: str) -> Response:
        return PlainTextResponse(
            "Insufficient parameters\n",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.put("/{uuid}/{rest:path}", dependencies=[Depends(require_api_key)])
    def put_unknown_target(uuid: str, rest: str) -> Response:
        return PlainTextResponse(
            "No request handler for that\n",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    @app.api_route("/{rest:path}", methods=UNSUPPORTED_METHODS)
    def not_implemented(rest: str) -> Response:
        return Response(status_code=status.HTTP_501_NOT_IMPLEMENTED)

    return app
