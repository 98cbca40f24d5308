"""API routes implementation."""

import logging
from typing import List

from fastapi import APIRouter, Body, Depends, Request, Response, HTTPException, status
from fastapi.responses import JSONResponse

from .schemas import (
    ShortenRequest,
    ShortenResponse,
    BatchRequestItem,
    BatchResponseItem,
    UserURLResponse,
    StatsResponse,
    ErrorResponse,
)
from ..dependencies import get_user_id, require_user_id, require_trusted_subnet
from shortener.common.url_builder import build_short_url
from shortener.errors import InvalidURLError, URLExistsError

router = APIRouter()
logger = logging.getLogger("shortener.web")


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request"},
        409: {"model": ShortenResponse, "description": "URL already shortened"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
    description="Create a shortened URL owned by the requesting user.",
)
async def shorten_url(
    request: Request,
    body: ShortenRequest,
    user_id: str = Depends(get_user_id),
):
    """Create a shortened URL."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        short_id = await service.shorten_url(body.url, user_id)
    except URLExistsError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"result": build_short_url(e.short_id, config.base_url)},
        )
    except InvalidURLError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to shorten {body.url}: {e!r}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    return ShortenResponse(result=build_short_url(short_id, config.base_url))


@router.post(
    "/shorten/batch",
    response_model=List[BatchResponseItem],
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Empty batch or invalid URL"},
    },
    summary="Create short URLs in batch",
)
async def shorten_batch(
    request: Request,
    body: List[BatchRequestItem],
    user_id: str = Depends(get_user_id),
):
    """Create several shortened URLs at once."""
    service = request.app.state.service
    config = request.app.state.config

    try:
        pairs = await service.shorten_batch(
            [(item.correlation_id, item.original_url) for item in body],
            user_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return [
        BatchResponseItem(
            correlation_id=correlation_id,
            short_url=build_short_url(short_id, config.base_url),
        )
        for correlation_id, short_id in pairs
    ]


@router.get(
    "/user/urls",
    response_model=List[UserURLResponse],
    responses={
        204: {"description": "User has no URLs"},
        401: {"model": ErrorResponse, "description": "No valid user cookie"},
    },
    summary="List user URLs",
)
async def get_user_urls(request: Request, user_id: str = Depends(require_user_id)):
    """List every URL the requesting user has shortened."""
    service = request.app.state.service
    config = request.app.state.config

    logger.info(f"Listing URLs for user {user_id}")
    records = await service.get_user_urls(user_id)

    if not records:
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return [
        UserURLResponse(
            short_url=build_short_url(record.short_id, config.base_url),
            original_url=record.original_url,
        )
        for record in records
    ]


@router.delete(
    "/user/urls",
    status_code=status.HTTP_202_ACCEPTED,
    responses={
        400: {"model": ErrorResponse, "description": "Body is not a JSON array of short ids"},
        401: {"model": ErrorResponse, "description": "No valid user cookie"},
    },
    summary="Delete user URLs",
    description=(
        "Accept a JSON array of short ids and mark those owned by the user as deleted. "
        "Deletion runs in the background after the response is sent."
    ),
)
async def delete_user_urls(
    request: Request,
    short_ids: List[str] = Body(...),
    user_id: str = Depends(require_user_id),
):
    """Schedule deletion of the user's short URLs and return immediately."""
    service = request.app.state.service
    tasks = request.app.state.tasks

    try:
        tasks.spawn(
            service.delete_user_urls(short_ids, user_id, cancel_event=tasks.cancel_event),
            name=f"delete-urls:{user_id}",
        )
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    logger.info(f"Accepted deletion of {len(short_ids)} URLs for user {user_id}")
    return Response(status_code=status.HTTP_202_ACCEPTED)


@router.get(
    "/internal/stats",
    response_model=StatsResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Client not in trusted subnet"},
    },
    summary="Get statistics",
    description="Get service-wide statistics. Only for clients in the trusted subnet.",
    dependencies=[Depends(require_trusted_subnet)],
)
async def get_statistics(request: Request):
    """Get service statistics."""
    service = request.app.state.service

    stats = await service.get_statistics()

    return StatsResponse(urls=stats["urls"], users=stats["users"])
