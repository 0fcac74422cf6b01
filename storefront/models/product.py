"""Pydantic models for products."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ProductCreate(BaseModel):
    """Request body for creating a product."""

    name: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=5000)
    price: float = Field(ge=0)
    category: str = Field(default="", max_length=100)
    stock: int = Field(default=0, ge=0)
    image_url: str = Field(default="", max_length=2048)


class ProductUpdate(BaseModel):
    """Request body for updating a product."""

    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = Field(default=None, max_length=5000)
    price: float | None = Field(default=None, ge=0)
    category: str | None = Field(default=None, max_length=100)
    stock: int | None = Field(default=None, ge=0)
    image_url: str | None = Field(default=None, max_length=2048)
