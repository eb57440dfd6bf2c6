"""
Response envelopes shared by every router.
"""

from pydantic import BaseModel


class APIError(BaseModel):
    """Body of every error response."""

    error: str


class SuccessResponse(BaseModel):
    success: bool = True
