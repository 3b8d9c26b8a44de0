"""Redirect route for short links."""

from fastapi import APIRouter, Request, HTTPException, status
from fastapi.responses import RedirectResponse

from ...errors import LinkError, LinkNotFound
from ...shortcode import ShortCodeGenerator

router = APIRouter()


def _not_found(short_code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Short code '{short_code}' not found",
    )


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_original(request: Request, short_code: str):
    """Redirect to the original URL of a short link."""
    # Paths like /favicon.ico are never short codes
    if not ShortCodeGenerator.is_valid_format(short_code):
        raise _not_found(short_code)

    manager = request.app.state.manager

    try:
        link = await manager.resolve_link(short_code)
    except LinkNotFound:
        raise _not_found(short_code)
    except LinkError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Internal error: {e}")

    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)
