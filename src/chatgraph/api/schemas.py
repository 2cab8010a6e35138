"""Request bodies and the response envelope of the HTTP API."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    input_text: str = Field(..., min_length=1)
    extra_context: Optional[str] = None
    config: Optional[Dict[str, Any]] = None
    thread_id: Optional[str] = Field(default=None, min_length=1)


class ResumeRequest(BaseModel):
    human_response: str = Field(..., min_length=1)
    metadata: Optional[Dict[str, Any]] = None


class DatabaseQueryRequest(BaseModel):
    query: str = Field(..., min_length=1)
    table_context: Optional[str] = None
    max_results: int = Field(default=100, gt=0)
    config: Optional[Dict[str, Any]] = None


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(data: Any = None) -> Dict[str, Any]:
    """``{success: true, data, timestamp}`` envelope."""
    body: Dict[str, Any] = {"success": True, "timestamp": timestamp()}
    if data is not None:
        body["data"] = jsonable_encoder(data)
    return body


def failure(error: str) -> Dict[str, Any]:
    """``{success: false, error, timestamp}`` envelope."""
    return {"success": False, "error": error, "timestamp": timestamp()}
