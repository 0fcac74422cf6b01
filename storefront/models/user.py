"""Pydantic models for user accounts."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserCreate(BaseModel):
    """Request body for registering a user."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6, max_length=200)
    role: Literal["user", "admin"] = "user"
    admin_password: str | None = Field(default=None, alias="adminPassword")


class LoginRequest(BaseModel):
    """Request body for logging in."""

    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=200)
