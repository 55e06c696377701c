"""
reqlog — API Schemas
======================

Pydantic response models for the routes mounted by create_app().
"""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Returned by GET /health."""

    status: str = Field(description="Overall status: healthy")
    service: str = Field(description="Service name stamped on log entries")
    env: str = Field(description="Environment name stamped on log entries")
    version: str = Field(description="reqlog version")
    trace_id: str = Field(description="Trace id of this request's Logger")
