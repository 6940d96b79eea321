"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import Any, Dict, List, Union

from pydantic import BaseModel, Field

from ...lib.database.models import LinkPage, OwnerStatistics, ShortLink


class ShortenRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
            ]
        }
    }


class CustomShortenRequest(BaseModel):
    """Request to map a custom short code to a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1)
    custom_code: str = Field(..., description="Custom short code (3-30 of A-Z a-z 0-9 - _)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://github.com/user/repo", "custom_code": "my-repo"},
            ]
        }
    }


class ShortenResponse(BaseModel):
    """Response after shortening a URL."""

    short_code: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    user_authenticated: bool = Field(..., description="Whether the link is owned by the caller")


class URLInfoResponse(BaseModel):
    """Response with short link information."""

    short_code: str
    original_url: str
    click_count: int
    created_at: datetime

    @classmethod
    def from_link(cls, link: ShortLink) -> "URLInfoResponse":
        return cls(
            short_code=link.code,
            original_url=link.destination_url,
            click_count=link.click_count,
            created_at=link.created_at,
        )


class LinkPageResponse(BaseModel):
    """A page of the caller's short links."""

    urls: List[URLInfoResponse]
    count: int
    total_count: int
    total_pages: int
    current_page: int
    has_more: bool

    @classmethod
    def from_page(cls, page: LinkPage) -> "LinkPageResponse":
        return cls(
            urls=[URLInfoResponse.from_link(link) for link in page.links],
            count=page.count,
            total_count=page.total_count,
            total_pages=page.total_pages,
            current_page=page.current_page,
            has_more=page.has_more,
        )


class BulkDeleteRequest(BaseModel):
    """Request to delete several short links."""

    codes: List[str] = Field(..., min_length=1, max_length=50, description="Short codes to delete")


class DeleteResponse(BaseModel):
    """Deletion result."""

    message: str
    deleted_count: int


class DailyActivityResponse(BaseModel):
    date: str
    count: int
    clicks: int


class OwnerStatisticsResponse(BaseModel):
    """Statistics over the caller's short links."""

    total_urls: int
    total_clicks: int
    avg_clicks_per_url: float
    recent_activity: List[DailyActivityResponse]
    top_urls: List[URLInfoResponse]

    @classmethod
    def from_statistics(cls, stats: OwnerStatistics) -> "OwnerStatisticsResponse":
        return cls(
            total_urls=stats.total_urls,
            total_clicks=stats.total_clicks,
            avg_clicks_per_url=stats.avg_clicks_per_url,
            recent_activity=[
                DailyActivityResponse(date=day.date, count=day.count, clicks=day.clicks)
                for day in stats.recent_activity
            ],
            top_urls=[URLInfoResponse.from_link(link) for link in stats.top_urls],
        )


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    cache: str = Field(..., description="Cache status")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: Union[str, Dict[str, Any]] = Field(
        ...,
        description="Error message, or message plus invalid_codes for bulk operations",
    )
