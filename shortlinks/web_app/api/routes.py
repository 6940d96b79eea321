"""API routes implementation."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from .schemas import (
    BulkDeleteRequest,
    CustomShortenRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    LinkPageResponse,
    OwnerStatisticsResponse,
    ShortenRequest,
    ShortenResponse,
    URLInfoResponse,
)
from ..dependencies import get_caller_identity, require_owner
from ...lib.common.urls import PublicOrigin
from ...lib.errors import (
    AliasTakenError,
    ExhaustedRetriesError,
    InvalidAliasError,
    InvalidDestinationError,
    NotFoundError,
    PermissionDeniedError,
    ShortLinkError,
)
from ...lib.identity import CallerIdentity, Owned

router = APIRouter()

ERROR_STATUS = {
    InvalidDestinationError: status.HTTP_400_BAD_REQUEST,
    InvalidAliasError: status.HTTP_400_BAD_REQUEST,
    AliasTakenError: status.HTTP_409_CONFLICT,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    ExhaustedRetriesError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def to_http_error(error: ShortLinkError) -> HTTPException:
    """Translate a service error into an HTTP error."""
    status_code = ERROR_STATUS.get(type(error), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=str(error))


def short_url_for(request: Request, short_code: str) -> str:
    """Build the public short URL for a code as seen by this request."""
    config = request.app.state.config
    origin = PublicOrigin.from_headers(
        request.headers,
        fallback_base_url=config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
        default_prefix=config.path_prefix,
    )
    return origin.short_url(short_code)


@router.post(
    "/create",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Create short URL",
    description="Shorten a URL. Authenticated callers get links they own; "
                "repeated submissions return the existing code.",
)
async def create_short_url(
    request: Request,
    body: ShortenRequest,
    caller: CallerIdentity = Depends(get_caller_identity),
):
    """Create a generated short URL."""
    service = request.app.state.service

    try:
        short_code = await service.create_short_link(body.url, caller)
    except ShortLinkError as e:
        raise to_http_error(e)

    return ShortenResponse(
        short_code=short_code,
        short_url=short_url_for(request, short_code),
        original_url=body.url,
        user_authenticated=isinstance(caller, Owned),
    )


@router.post(
    "/create/custom",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or custom code"},
        401: {"model": ErrorResponse, "description": "Authentication required"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
    },
    summary="Create custom short URL",
    description="Map a caller-chosen short code to a URL. Requires authentication.",
)
async def create_custom_short_url(
    request: Request,
    body: CustomShortenRequest,
    owner_id: str = Depends(require_owner),
):
    """Create a custom short URL."""
    service = request.app.state.service

    try:
        short_code = await service.create_custom(body.url, body.custom_code, Owned(owner_id))
    except ShortLinkError as e:
        raise to_http_error(e)

    return ShortenResponse(
        short_code=short_code,
        short_url=short_url_for(request, short_code),
        original_url=body.url,
        user_authenticated=True,
    )


@router.get(
    "/create/my-urls",
    response_model=LinkPageResponse,
    responses={401: {"model": ErrorResponse, "description": "Authentication required"}},
    summary="List my short URLs",
    description="Search, sort and paginate the caller's short URLs.",
)
async def list_my_urls(
    request: Request,
    owner_id: str = Depends(require_owner),
    limit: int = Query(20, ge=1, le=100),
    skip: int = Query(0, ge=0),
    search: str = Query("", max_length=200),
    sort_by: str = Query("created_at", pattern="^(created_at|click_count|code|destination_url)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
):
    """List the caller's short URLs."""
    service = request.app.state.service

    page = await service.list_owner_links(
        owner_id,
        limit=limit,
        skip=skip,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return LinkPageResponse.from_page(page)


@router.get(
    "/create/stats",
    response_model=OwnerStatisticsResponse,
    responses={401: {"model": ErrorResponse, "description": "Authentication required"}},
    summary="Get my statistics",
    description="Totals, last 7 days of activity and most clicked links for the caller.",
)
async def get_my_statistics(request: Request, owner_id: str = Depends(require_owner)):
    """Get statistics over the caller's short URLs."""
    service = request.app.state.service

    stats = await service.owner_statistics(owner_id)
    return OwnerStatisticsResponse.from_statistics(stats)


@router.delete(
    "/create/bulk",
    response_model=DeleteResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Some codes are missing or not owned"},
    },
    summary="Bulk delete short URLs",
    description="Delete up to 50 of the caller's short URLs. Nothing is deleted if any code is rejected.",
)
async def bulk_delete_urls(
    request: Request,
    body: BulkDeleteRequest,
    owner_id: str = Depends(require_owner),
):
    """Delete several short URLs."""
    service = request.app.state.service

    try:
        deleted = await service.bulk_delete(body.codes, owner_id)
    except PermissionDeniedError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": str(e), "invalid_codes": e.codes},
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return DeleteResponse(
        message=f"Successfully deleted {deleted} URL(s)",
        deleted_count=deleted,
    )


@router.delete(
    "/create/{short_code}",
    response_model=DeleteResponse,
    responses={
        401: {"model": ErrorResponse, "description": "Authentication required"},
        403: {"model": ErrorResponse, "description": "Short code owned by someone else"},
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Delete short URL",
    description="Delete one of the caller's short URLs.",
)
async def delete_url(request: Request, short_code: str, owner_id: str = Depends(require_owner)):
    """Delete a short URL."""
    service = request.app.state.service

    try:
        await service.delete_link(short_code, owner_id)
    except ShortLinkError as e:
        raise to_http_error(e)

    return DeleteResponse(message="URL deleted successfully", deleted_count=1)


@router.get(
    "/urls/{short_code}",
    response_model=URLInfoResponse,
    responses={404: {"model": ErrorResponse, "description": "Short code not found"}},
    summary="Get URL information",
    description="Get information about a short URL including its click count.",
)
async def get_url_info(request: Request, short_code: str):
    """Get information about a short URL."""
    service = request.app.state.service

    try:
        link = await service.get_link_info(short_code)
    except NotFoundError as e:
        raise to_http_error(e)

    return URLInfoResponse.from_link(link)


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service and its dependencies are healthy.",
)
async def health_check(request: Request):
    """Health check endpoint for monitoring."""
    service = request.app.state.service

    health = await service.health_check()

    return HealthResponse(
        status="healthy" if health["overall"] else "unhealthy",
        database="healthy" if health["database"] else "unhealthy",
        cache="healthy" if health["cache"] else "unhealthy",
        timestamp=datetime.now(timezone.utc),
    )
