"""Pydantic schemas for staged uploads."""

from typing import Optional

from pydantic import BaseModel


class CleanupResult(BaseModel):
    """Response model for aborting an upload."""
    upload_id: str
    success: bool
    cleared_chunks: int = 0
    message: Optional[str] = None
    error: Optional[str] = None
