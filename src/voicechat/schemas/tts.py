"""Pydantic models for the text-to-speech endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, StrictStr


class SynthesisRequest(BaseModel):
    """Incoming synthesis payload: a single non-empty string."""

    text: StrictStr = Field(min_length=1)

    model_config = ConfigDict(extra="ignore")


class ErrorResponse(BaseModel):
    """Error body returned by the gateway."""

    error: str


__all__ = ["ErrorResponse", "SynthesisRequest"]
