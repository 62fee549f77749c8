"""FastAPI application serving the photo gallery."""

from __future__ import annotations

import os
import secrets
from contextlib import asynccontextmanager
from importlib.resources import files
from typing import Any, AsyncIterator, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, HTMLResponse, Response
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.staticfiles import StaticFiles

from photo_gallery import __version__
from photo_gallery.core import DecodeError, ImageReadError, PipelineState, get_logger, scale_image
from photo_gallery.core.models import ThumbnailRecord
from photo_gallery.core.services import GalleryContext
from photo_gallery.web.frontend import render_index, render_view

REALM = "Galeria"
JPEG = "image/jpeg"

LOGGER = get_logger("web")

security = HTTPBasic(realm=REALM)


def get_context(request: Request) -> GalleryContext:
    return request.app.state.gallery


def require_credentials(
    request: Request, credentials: HTTPBasicCredentials = Depends(security)
) -> str:
    """Check the single static credential pair in constant time."""
    config = get_context(request).config
    user_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), config.login.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), config.password.encode("utf-8")
    )
    if not (user_ok and password_ok):
        LOGGER.warning(f"Rejected credentials for user {credentials.username!r}")
        raise HTTPException(
            status_code=401,
            detail="Invalid username or password",
            headers={"WWW-Authenticate": f'Basic realm="{REALM}"'},
        )
    return credentials.username


def etag_matches(if_none_match: Optional[str], etag: str) -> bool:
    """True when an If-None-Match header value matches the unquoted ``etag``."""
    if not if_none_match:
        return False
    for candidate in if_none_match.split(","):
        candidate = candidate.strip()
        if candidate == "*":
            return True
        if candidate.startswith("W/"):
            candidate = candidate[2:]
        if candidate == f'"{etag}"':
            return True
    return False


def parse_width(raw: Optional[str], max_width: int) -> Optional[int]:
    """Validate the ``width`` query value; missing or empty means the original file."""
    if not raw:
        return None
    try:
        width = int(raw)
    except ValueError:
        raise HTTPException(status_code=422, detail="width must be an integer") from None
    if width < 1:
        raise HTTPException(status_code=422, detail="width must be positive")
    if width > max_width:
        raise HTTPException(
            status_code=422,
            detail=f"width must not exceed {max_width}",
        )
    return width


router = APIRouter(dependencies=[Depends(require_credentials)])


@router.get("/", response_class=HTMLResponse)
async def index(context: GalleryContext = Depends(get_context)) -> HTMLResponse:
    return HTMLResponse(content=render_index(context))


@router.get("/view/{photo_number}", response_class=HTMLResponse)
async def view_photo(
    photo_number: int, context: GalleryContext = Depends(get_context)
) -> HTMLResponse:
    if context.photo(photo_number) is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    return HTMLResponse(content=render_view(context, photo_number))


@router.get("/thumbs/{photo_number}")
async def thumbnail(
    photo_number: int,
    if_none_match: Optional[str] = Header(None),
    context: GalleryContext = Depends(get_context),
) -> Response:
    entry = context.photo(photo_number)
    if not isinstance(entry, ThumbnailRecord):
        raise HTTPException(status_code=404, detail="Thumbnail not found")

    etag = f'"{entry.etag}"'
    if etag_matches(if_none_match, entry.etag):
        return Response(status_code=304, headers={"ETag": etag})
    return Response(content=entry.image, media_type=JPEG, headers={"ETag": etag})


@router.get("/photos/{photo_number}")
async def photo(
    photo_number: int,
    width: Optional[str] = Query(None, description="Rescale to this width"),
    context: GalleryContext = Depends(get_context),
) -> Response:
    config = context.config
    requested_width = parse_width(width, config.max_scaled_width)
    entry = context.photo(photo_number)
    if entry is None:
        raise HTTPException(status_code=404, detail="Photo not found")
    if not os.path.isfile(entry.source_path):
        LOGGER.warning(f"Source file vanished: {entry.source_path}")
        raise HTTPException(status_code=404, detail="Photo file not found")

    if requested_width is None:
        return FileResponse(entry.source_path, media_type=JPEG)

    try:
        scaled = await run_in_threadpool(
            scale_image,
            entry.source_path,
            requested_width,
            config.scaled_height(requested_width),
            config.jpeg_quality,
        )
    except ImageReadError as exc:
        raise HTTPException(status_code=404, detail="Photo file not readable") from exc
    except DecodeError as exc:
        raise HTTPException(status_code=500, detail="Unable to scale photo") from exc
    return Response(content=scaled, media_type=JPEG)


def create_app(context: GalleryContext) -> FastAPI:
    """Create the gallery application for an initialised context."""
    if context.state not in (PipelineState.READY, PipelineState.SERVING):
        raise RuntimeError(
            f"Gallery is not ready to serve (state {context.state.value})"
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if context.state is PipelineState.READY:
            context.mark_serving()
        LOGGER.info(f"Thumbnails loaded - serving {context.photo_count} photos")
        yield

    app = FastAPI(title="Photo Gallery", version=__version__, lifespan=lifespan)
    app.state.gallery = context

    static_dir = files("photo_gallery.web").joinpath("static")
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

    @app.get("/healthz")
    async def healthz() -> dict[str, Any]:
        return {"state": context.state.value, "photos": context.photo_count}

    app.include_router(router)
    return app
