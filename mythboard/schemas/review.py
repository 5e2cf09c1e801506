from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field


class ReviewUpsert(BaseModel):
    """Create or replace the caller's review"""
    rating: int = Field(..., ge=1, le=5, description="Stars, 1 to 5")
    comment: Optional[str] = Field(default=None, max_length=2000)


class ReviewResponse(ReviewUpsert):
    id: str
    post_id: str
    user_identifier: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReviewListResponse(BaseModel):
    items: List[ReviewResponse]
    average_rating: float = Field(..., description="0 when nobody rated the post yet")
    reviews_count: int
