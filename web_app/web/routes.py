"""Plain-text shortening, health and redirect routes."""

import logging

from fastapi import APIRouter, Depends, Request, Response, HTTPException, status
from fastapi.responses import PlainTextResponse, RedirectResponse

from ..dependencies import get_user_id
from shortener.common.url_builder import build_short_url
from shortener.errors import InvalidURLError, URLExistsError, URLNotFoundError, URLDeletedError

router = APIRouter()
logger = logging.getLogger("shortener.web")


@router.post("/", response_class=PlainTextResponse, status_code=status.HTTP_201_CREATED)
async def shorten_text(request: Request, user_id: str = Depends(get_user_id)):
    """Shorten the URL sent as the plain-text request body."""
    service = request.app.state.service
    config = request.app.state.config

    body = await request.body()
    original_url = body.decode("utf-8", errors="replace").strip()

    try:
        short_id = await service.shorten_url(original_url, user_id)
    except URLExistsError as e:
        return PlainTextResponse(
            build_short_url(e.short_id, config.base_url),
            status_code=status.HTTP_409_CONFLICT,
        )
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return PlainTextResponse(
        build_short_url(short_id, config.base_url),
        status_code=status.HTTP_201_CREATED,
    )


@router.get("/ping", response_class=PlainTextResponse)
async def ping(request: Request):
    """Health check for load balancers."""
    service = request.app.state.service

    health = await service.health_check()

    if not health["overall"]:
        logger.error(f"Health check failed: {health}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Storage is not available",
        )
    return PlainTextResponse("Pong")


@router.get("/{short_id}")
async def redirect_to_url(request: Request, short_id: str):
    """Redirect to the original URL."""
    service = request.app.state.service

    try:
        original_url = await service.get_original_url(short_id)
    except URLDeletedError:
        return Response(status_code=status.HTTP_410_GONE)
    except URLNotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return RedirectResponse(url=original_url, status_code=status.HTTP_307_TEMPORARY_REDIRECT)
