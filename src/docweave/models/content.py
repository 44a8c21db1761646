"""Fetched content data models"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime"""
    return datetime.now(timezone.utc)


class ContentFormat(str, Enum):
    """Closed set of documentation formats, one extractor each"""

    STRUCTURED_API_REFERENCE = "structured_api_reference"
    INTERACTIVE_REFERENCE = "interactive_reference"
    RICH_TEXT_DOCUMENT = "rich_text_document"
    VIDEO_WALKTHROUGH = "video_walkthrough"


class HTTPMethod(str, Enum):
    """HTTP request methods"""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(str, Enum):
    """Parameter location in request"""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    BODY = "body"
    COOKIE = "cookie"


class Parameter(BaseModel):
    """API endpoint parameter"""

    name: str
    location: ParameterLocation = ParameterLocation.QUERY
    type: str = "string"
    description: str | None = None
    required: bool = False


class ApiEndpoint(BaseModel):
    """An endpoint recovered from a reference page"""

    path: str
    method: HTTPMethod
    summary: str | None = None
    description: str | None = None
    parameters: list[Parameter] = Field(default_factory=list)
    responses: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    operation_id: str | None = None


class Schema(BaseModel):
    """A data model recovered from a reference page"""

    name: str
    type: str = "object"
    properties: dict[str, Any] = Field(default_factory=dict)
    required: list[str] = Field(default_factory=list)
    description: str | None = None
    example: Any | None = None


class CodeExample(BaseModel):
    """A code example extracted from documentation"""

    language: str  # javascript, python, curl or unknown
    code: str
    description: str | None = None
    context: str | None = None  # Where on the page it came from


class CrawledContent(BaseModel):
    """Result of one fetch against one source URL"""

    url: str
    title: str
    content: str
    format: ContentFormat
    source: str = "unknown"
    metadata: dict[str, Any] = Field(default_factory=dict)
    extracted_at: datetime = Field(default_factory=utc_now)

    endpoints: list[ApiEndpoint] = Field(default_factory=list)
    schemas: list[Schema] = Field(default_factory=list)
    code_examples: list[CodeExample] = Field(default_factory=list)
