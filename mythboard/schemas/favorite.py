from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field

from mythboard.schemas.post import PostSummary


class FavoriteResponse(BaseModel):
    """Favorite entry with the post it points at"""
    id: str = Field(..., description="Favorite ID")
    post_id: str = Field(..., description="Post ID")
    user_identifier: str = Field(..., description="Owner identity")
    created_at: datetime = Field(..., description="Creation time")
    post: Optional[PostSummary] = Field(default=None, description="Post details, missing when the post was deleted")

    class Config:
        from_attributes = True
