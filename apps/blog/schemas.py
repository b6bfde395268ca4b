"""
Pydantic schemas for the Blog API.

Request bodies are deliberately permissive: presence and whitespace checks
live in apps.blog.validation so every write path reports the same errors.
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class PostWrite(BaseModel):
    """Body for creating or replacing a post."""
    id: Optional[int] = None
    title: Optional[str] = None
    author: Optional[str] = None
    content: Optional[str] = None
    # Version token from a previous read; If-Match takes precedence
    version: Optional[int] = None


class PostResponse(BaseModel):
    """Schema for post responses."""
    id: int
    title: str
    author: str
    content: str
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    version: int

    class Config:
        from_attributes = True
