from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from mythboard.core.config import IdentityMode, Settings, get_settings
from mythboard.core.identity import (
    AccountIdentityProvider,
    AnonymousIdentityProvider,
    CookieTokenStore,
    Identity,
    IdentityProvider,
    require,
)
from mythboard.core.security import optional_oauth2_scheme
from mythboard.db.database import get_session
from mythboard.models.post import Post
from mythboard.repositories.favorite import SqlFavoriteRepository
from mythboard.repositories.reaction import SqlReactionRepository
from mythboard.services.favorites import FavoriteToggleEngine
from mythboard.services.reactions import ReactionToggleEngine

SettingsDep = Annotated[Settings, Depends(get_settings)]
SessionDep = Annotated[Session, Depends(get_session)]


def get_identity_provider(
    request: Request,
    response: Response,
    settings: SettingsDep,
    session: SessionDep,
    token: Optional[str] = Depends(optional_oauth2_scheme)
) -> IdentityProvider:
    """Build the provider of the configured identity mode"""
    if settings.IDENTITY_MODE == IdentityMode.ACCOUNT:
        return AccountIdentityProvider(session, token)
    store = CookieTokenStore(
        request,
        response,
        cookie_name=settings.IDENTIFIER_COOKIE,
        header_name=settings.IDENTIFIER_HEADER
    )
    return AnonymousIdentityProvider(store, key=settings.IDENTIFIER_COOKIE)


def get_optional_identity(
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)]
) -> Optional[Identity]:
    """Identity used for read paths, None without a session in account mode"""
    return provider.resolve()


def get_identity(
    identity: Annotated[Optional[Identity], Depends(get_optional_identity)]
) -> Identity:
    """Identity required by write paths"""
    return require(identity)


def get_reaction_engine(session: SessionDep, settings: SettingsDep) -> ReactionToggleEngine:
    return ReactionToggleEngine(
        SqlReactionRepository(session),
        policy=settings.REACTION_POLICY,
        allowed_types=settings.REACTION_TYPES
    )


def get_favorite_engine(session: SessionDep) -> FavoriteToggleEngine:
    return FavoriteToggleEngine(SqlFavoriteRepository(session))


def get_post_or_404(session: Session, post_id: str) -> Post:
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post
