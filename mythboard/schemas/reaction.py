from typing import Dict, List
from pydantic import BaseModel, Field

from mythboard.core.config import ReactionPolicy


class ReactionCreate(BaseModel):
    """Reaction request on a post"""
    type: str = Field(..., min_length=1, max_length=32, description="Reaction type key, e.g. 👍")


class ImageReactionCreate(ReactionCreate):
    """Reaction request on a gallery image"""
    image_url: str = Field(..., min_length=1, max_length=2048, description="Public URL of the image")


class ReactionCounts(BaseModel):
    """Counts derived from a snapshot of reaction rows"""
    counts_by_type: Dict[str, int] = Field(default_factory=dict)
    total_count: int = 0


class ReactionSummary(ReactionCounts):
    """What a reaction bar renders for one target"""
    target: str = Field(..., description="Target key, post:<id> or image:<url>")
    mine: List[str] = Field(default_factory=list, description="Reaction types held by the current identity")
    policy: ReactionPolicy


class ReactionTypesResponse(BaseModel):
    types: List[str]
    policy: ReactionPolicy
