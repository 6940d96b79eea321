"""Redirect and load-balancer routes."""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from ...lib.errors import NotFoundError

router = APIRouter()


@router.get("/health", include_in_schema=False)
async def health_check_web(request: Request):
    """Health check endpoint (simple version for load balancers)."""
    service = request.app.state.service

    health = await service.health_check()

    if health["overall"]:
        return {"status": "healthy"}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Service unhealthy",
    )


@router.get("/{short_code}", include_in_schema=False)
async def redirect_to_url(request: Request, short_code: str):
    """Redirect to the destination URL.

    The click increment is scheduled in the background; the redirect does
    not wait for it.
    """
    service = request.app.state.service

    try:
        destination_url = await service.resolve(short_code)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    # 302 so every visit comes back through the service and is counted
    return RedirectResponse(url=destination_url, status_code=status.HTTP_302_FOUND)
