"""Agent response schemas."""

from typing import Any, Dict
from pydantic import BaseModel, Field


class RoutedResponse(BaseModel):
    """Output of an intent handler."""
    text: str
    intent: str
    extracted_data: Dict[str, Any] = Field(default_factory=dict)


class QueryResponse(BaseModel):
    """Response returned to the caller of ``handle_query``."""
    response: str
    session_id: str
