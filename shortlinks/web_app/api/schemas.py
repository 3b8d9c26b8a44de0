"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime


class CreateLinkRequest(BaseModel):
    """Request to shorten a URL."""

    url: str = Field(..., description="The URL to shorten", min_length=1, max_length=2048)
    aliases: Optional[List[str]] = Field(None, description="Optional alternate names for the link")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "url": "https://example.com/very/long/path/to/resource",
                    "aliases": None
                },
                {
                    "url": "https://github.com/user/repo",
                    "aliases": ["my repo", "repo/main"]
                }
            ]
        }
    }


class LinkResponse(BaseModel):
    """A stored link."""

    short_code: str = Field(..., description="The generated short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The normalized original URL")
    identifier: str = Field(..., description="Unique identifier of the record")
    aliases: Optional[List[str]] = Field(None, description="Percent-encoded aliases")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "short_code": "bK3x9Qa",
                    "short_url": "https://short.link/bK3x9Qa",
                    "original_url": "https://example.com/very/long/path",
                    "identifier": "2f1c0b9e-7d4a-4c55-9a1e-3b8f6c2d1e0a",
                    "aliases": ["my%20repo"]
                }
            ]
        }
    }


class LinkListResponse(BaseModel):
    """A page of stored links, ordered by short code."""

    count: int
    links: List[LinkResponse]
    next_start_after: Optional[str] = Field(None, description="Pass as start_after to get the next page")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    store: str = Field(..., description="Store status")
    cache: str = Field(..., description="Cache status")
    total_links: Optional[int] = Field(None, description="Number of stored links")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    detail: str = Field(..., description="Error message")
