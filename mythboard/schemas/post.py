from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List

class PostBase(BaseModel):
    """Post base model"""
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    author: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=50, description="e.g. myth or cursed-object")

class PostCreate(PostBase):
    """Create post request model"""
    images: List[str] = Field(default_factory=list, max_length=3, description="Public URLs of the gallery images")

class PostUpdate(BaseModel):
    """Update post request model"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    excerpt: Optional[str] = Field(default=None, max_length=500)
    author: Optional[str] = Field(default=None, max_length=100)
    category: Optional[str] = Field(default=None, max_length=50)
    images: Optional[List[str]] = Field(default=None, max_length=3)

class PostResponse(PostBase):
    """Post response model"""
    id: str
    images: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
    favorites_count: int = 0
    reviews_count: int = 0
    average_rating: float = 0

    class Config:
        from_attributes = True

class PostSummary(BaseModel):
    """Post fields shown in lists"""
    id: str
    title: str
    excerpt: Optional[str] = None
    author: Optional[str] = None
    category: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int

class PostListResponse(BaseModel):
    items: List[PostSummary]
    pagination: Pagination
