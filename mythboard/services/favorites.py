import logging
from typing import Optional

from pydantic import BaseModel

from mythboard.core.errors import StoreError, TargetNotFound
from mythboard.core.identity import Identity
from mythboard.core.locks import KeyedLock
from mythboard.repositories.favorite import FavoriteRepository

logger = logging.getLogger(__name__)

favorite_locks = KeyedLock()


class FavoriteState(BaseModel):
    post_id: str
    favorited: bool
    count: int


class FavoriteToggleEngine:
    """NotFavorited <-> Favorited per (identity, post), the row's existence is the state"""

    def __init__(self, repository: FavoriteRepository, locks: Optional[KeyedLock] = None):
        self.repository = repository
        self.locks = locks if locks is not None else favorite_locks

    def state(self, identity: Optional[Identity], post_id: str) -> FavoriteState:
        favorited = False
        if identity is not None:
            try:
                favorited = self.repository.find(identity, post_id) is not None
            except StoreError:
                logger.warning("Could not read favorite state of %s on post %s", identity, post_id)
        return FavoriteState(
            post_id=post_id,
            favorited=favorited,
            count=self.repository.count_for_post(post_id)
        )

    def toggle(self, identity: Identity, post_id: str) -> FavoriteState:
        with self.locks.hold((identity.value, post_id)):
            existing = self.repository.find(identity, post_id)
            if existing is None:
                self.repository.insert(identity, post_id)
                favorited = True
            else:
                self.repository.delete(existing.id)
                favorited = False
        logger.info("Post %s %s by %s", post_id, "favorited" if favorited else "unfavorited", identity)
        return FavoriteState(
            post_id=post_id,
            favorited=favorited,
            count=self.repository.count_for_post(post_id)
        )

    def remove(self, identity: Identity, favorite_id: str) -> None:
        """Delete one of the identity's own favorites by row id"""
        favorite = self.repository.get(favorite_id)
        if favorite is None or favorite.user_identifier != identity.value:
            raise TargetNotFound("Favorite not found")
        with self.locks.hold((identity.value, favorite.post_id)):
            self.repository.delete(favorite.id)
