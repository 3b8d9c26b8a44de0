"""API routes implementation."""

from fastapi import APIRouter, Request, HTTPException, Query, status
from datetime import datetime, timezone
from typing import Optional

from .schemas import (
    CreateLinkRequest,
    LinkResponse,
    LinkListResponse,
    HealthResponse,
    ErrorResponse,
)
from ...models import Link
from ...errors import (
    InvalidLink,
    LinkError,
    LinkNotFound,
    ShortCodeExhausted,
)
from ...common.url_builder import build_short_url

router = APIRouter()


def _to_response(request: Request, link: Link) -> LinkResponse:
    config = request.app.state.config
    return LinkResponse(
        short_code=link.short_code,
        short_url=build_short_url(
            short_code=link.short_code,
            base_url=config.base_url,
            path_prefix=config.path_prefix,
        ),
        original_url=link.original_url,
        identifier=str(link.identifier),
        aliases=list(link.aliases) if link.aliases is not None else None,
    )


@router.post(
    "/links",
    response_model=LinkResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or alias"},
        500: {"model": ErrorResponse, "description": "Store or encoding failure"},
        503: {"model": ErrorResponse, "description": "No free short code found"},
    },
    summary="Create short link",
    description="Shorten a URL, optionally attaching aliases.",
)
async def create_link(request: Request, body: CreateLinkRequest):
    """Create a short link."""
    manager = request.app.state.manager

    try:
        link = await manager.generate_link(body.url, body.aliases)
    except InvalidLink as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except ShortCodeExhausted as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    except LinkError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Internal error: {e}")

    return _to_response(request, link)


@router.get(
    "/links",
    response_model=LinkListResponse,
    summary="List links",
    description="List stored links ordered by short code.",
)
async def list_links(
    request: Request,
    limit: int = Query(100, ge=1, le=1000),
    start_after: Optional[str] = Query(None),
):
    """List stored links."""
    manager = request.app.state.manager

    try:
        links = await manager.list_links(limit=limit, start_after=start_after)
    except LinkError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Internal error: {e}")

    return LinkListResponse(
        count=len(links),
        links=[_to_response(request, link) for link in links],
        next_start_after=links[-1].short_code if len(links) == limit else None,
    )


@router.get(
    "/links/{short_code}",
    response_model=LinkResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
        500: {"model": ErrorResponse, "description": "Store or decoding failure"},
    },
    summary="Get link",
    description="Resolve a short code to its full link record.",
)
async def get_link(request: Request, short_code: str):
    """Get a stored link."""
    manager = request.app.state.manager

    try:
        link = await manager.resolve_link(short_code)
    except LinkNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found",
        )
    except LinkError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Internal error: {e}")

    return _to_response(request, link)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for load balancers and monitoring."""
    manager = request.app.state.manager

    health = await manager.health_check()

    total_links = None
    if health["store"]:
        try:
            total_links = await manager.count_links()
        except LinkError:
            total_links = None

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        store="healthy" if health["store"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        total_links=total_links,
        timestamp=datetime.now(timezone.utc),
    )
