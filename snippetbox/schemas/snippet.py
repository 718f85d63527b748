"""
Snippetbox — Snippet Schemas
==============================

What:  The create-snippet submission and the snippet representation used in
       page responses.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Form Models: what the client submits
# ══════════════════════════════════════════════════════════════════════════


class SnippetCreateInput(BaseModel):
    """
    Fields of POST /snippet/create.

    expires is a number of days; a non-numeric value is a decode error (400),
    a number outside {1, 7, 365} is a field error (422).
    """
    title: str = ""
    content: str = ""
    expires: int = 0


# ══════════════════════════════════════════════════════════════════════════
# Response Models: what the pages show
# ══════════════════════════════════════════════════════════════════════════


def human_date(value: datetime) -> str:
    """Display format for timestamps, e.g. '17 Mar 2026 at 10:15'."""
    return value.strftime("%d %b %Y at %H:%M")


class SnippetResponse(BaseModel):
    id: int = Field(description="Snippet identifier")
    title: str = Field(description="Snippet title (max 100 characters)")
    content: str = Field(description="Snippet body")
    created: datetime = Field(description="Creation time (UTC)")
    expires: datetime = Field(description="Time after which the snippet is hidden (UTC)")
    created_display: str = Field(description="Creation time formatted for display")

    model_config = {"from_attributes": True}

    @classmethod
    def from_model(cls, snippet) -> "SnippetResponse":
        return cls(
            id=snippet.id,
            title=snippet.title,
            content=snippet.content,
            created=snippet.created,
            expires=snippet.expires,
            created_display=human_date(snippet.created),
        )
