"""
Snippetbox — Page, Error and Health Schemas
=============================================

What:  Response shapes shared by every route.

PageResponse carries what a server-rendered template would receive:
    page              which view this is (home, view, create, signup, login)
    current_year      footer year
    flash             the flash message popped for this render, if any
    is_authenticated  whether the navigation should show logout/create
    csrf_token        value the client must echo in its next submission
    form / snippet / snippets   page-specific data
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from snippetbox.schemas.snippet import SnippetResponse


class FormState(BaseModel):
    """Submitted values plus the errors to show next to them."""
    values: Dict[str, object] = Field(default_factory=dict)
    field_errors: Dict[str, str] = Field(default_factory=dict)
    non_field_errors: List[str] = Field(default_factory=list)


class PageResponse(BaseModel):
    page: str = Field(description="View name")
    current_year: int = Field(description="Current year (UTC)")
    flash: Optional[str] = Field(default=None, description="One-shot notification")
    is_authenticated: bool = Field(default=False)
    csrf_token: Optional[str] = Field(default=None, description="Anti-forgery token for forms")
    form: Optional[FormState] = None
    snippet: Optional[SnippetResponse] = None
    snippets: List[SnippetResponse] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """
    Standardized error body.

    Fields:
        error: Machine-readable error code (e.g. "bad_request", "not_found")
        message: Human-readable description, never internal diagnostics
        details: Optional extra context safe for clients
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
