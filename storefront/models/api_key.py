"""Pydantic models for API keys."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ApiKeyCreate(BaseModel):
    """Optional request body for generating an API key."""

    name: str = Field(default="", max_length=100)
