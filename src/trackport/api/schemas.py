"""
API schemas for Trackport.

Pydantic models for response validation. Import request bodies are checked
by hand so malformed requests get the literal error messages exporters rely on.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error body returned with 4xx responses."""

    error: str


class WatermarkResponse(BaseModel):
    """Latest imported event time for an environment."""

    timestamp: int = Field(..., description="Epoch seconds; 0 when nothing was imported")


class ImportSuccessResponse(BaseModel):
    """Body of a fully successful import."""

    message: str


class ImportPartialResponse(BaseModel):
    """Body of a partially successful import; each pair appears only when non-empty."""

    messageConversation: Optional[str] = None
    notValids: Optional[list[Any]] = None
    messageParseData: Optional[str] = None
    invalidParseDatas: Optional[list[list[dict]]] = None


class ImportWriteError(BaseModel):
    """One store write failure in a failed import."""

    conversation_id: str
    operation: str
    error: str


class ConversationResponse(BaseModel):
    """Stored conversation envelope."""

    id: str
    project_id: str
    env: str
    status: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
