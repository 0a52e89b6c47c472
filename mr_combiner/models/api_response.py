"""API response data models."""

from typing import List

from pydantic import BaseModel


class WebhookResponse(BaseModel):
    """Response from webhook handler."""

    message: str


class ErrorResponse(BaseModel):
    """Error body returned by the API."""

    error: str


class HealthResponse(BaseModel):
    """Health check body."""

    status: str
    version: str
    active_projects: List[int] = []
