from typing import Annotated, List, Optional
from fastapi import APIRouter, Depends, status

from mythboard.api.deps import (
    SessionDep,
    get_favorite_engine,
    get_identity,
    get_optional_identity,
    get_post_or_404,
)
from mythboard.core.identity import Identity
from mythboard.repositories.favorite import SqlFavoriteRepository
from mythboard.schemas.favorite import FavoriteResponse
from mythboard.schemas.post import PostSummary
from mythboard.services.favorites import FavoriteState, FavoriteToggleEngine

router = APIRouter()

EngineDep = Annotated[FavoriteToggleEngine, Depends(get_favorite_engine)]


@router.get("", response_model=List[FavoriteResponse], summary="List my favorite posts")
def list_favorites(
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep
):
    """List the caller's favorites, newest first, with post details"""
    rows = SqlFavoriteRepository(session).list_with_posts(identity)
    return [
        FavoriteResponse(
            id=favorite.id,
            post_id=favorite.post_id,
            user_identifier=favorite.user_identifier,
            created_at=favorite.created_at,
            post=PostSummary.model_validate(post) if post is not None else None
        )
        for favorite, post in rows
    ]


@router.get("/{post_id}", response_model=FavoriteState, summary="Get favorite state of a post")
def get_favorite(
    post_id: str,
    session: SessionDep,
    engine: EngineDep,
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)]
):
    """Whether the caller favorited the post, and how many did"""
    get_post_or_404(session, post_id)
    return engine.state(identity, post_id)


@router.post("/{post_id}", response_model=FavoriteState, summary="Toggle a post in my favorites")
def toggle_favorite(
    post_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    session: SessionDep,
    engine: EngineDep
):
    """Add the post to the caller's favorites, or remove it when already there"""
    get_post_or_404(session, post_id)
    return engine.toggle(identity, post_id)


@router.delete("/entry/{favorite_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Remove a favorite entry")
def remove_favorite(
    favorite_id: str,
    identity: Annotated[Identity, Depends(get_identity)],
    engine: EngineDep
):
    """Remove one of the caller's favorites by its entry id"""
    engine.remove(identity, favorite_id)
    return None
