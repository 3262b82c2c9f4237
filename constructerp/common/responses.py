"""Standard response envelope: ``{"success": ..., "data"?: ..., "message"?: ...}``."""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """Envelope returned by every endpoint."""

    success: bool = True
    data: Optional[T] = None
    message: Optional[str] = None


class MessageResponse(BaseModel):
    """Envelope for write endpoints that only acknowledge."""

    success: bool = True
    message: str
