import logging
from typing import List, Optional, Protocol, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mythboard.core.errors import StoreConflictError, StoreError
from mythboard.core.identity import Identity
from mythboard.models.favorite import Favorite
from mythboard.models.post import Post

logger = logging.getLogger(__name__)


class FavoriteRepository(Protocol):
    """Favorite row access; the toggle engine depends on this interface only"""

    def find(self, identity: Identity, post_id: str) -> Optional[Favorite]:
        ...

    def get(self, favorite_id: str) -> Optional[Favorite]:
        ...

    def insert(self, identity: Identity, post_id: str) -> Favorite:
        ...

    def delete(self, favorite_id: str) -> None:
        ...

    def count_for_post(self, post_id: str) -> int:
        ...


class SqlFavoriteRepository:
    """FavoriteRepository over a SQLAlchemy session"""

    def __init__(self, session: Session):
        self.session = session

    def find(self, identity: Identity, post_id: str) -> Optional[Favorite]:
        try:
            return self.session.scalars(
                select(Favorite).where(
                    Favorite.post_id == post_id,
                    Favorite.user_identifier == identity.value
                )
            ).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to look up favorite of %s on post %s: %s", identity, post_id, e)
            raise StoreError("Failed to load your favorite") from e

    def get(self, favorite_id: str) -> Optional[Favorite]:
        return self.session.get(Favorite, favorite_id)

    def insert(self, identity: Identity, post_id: str) -> Favorite:
        favorite = Favorite(post_id=post_id, user_identifier=identity.value)
        self.session.add(favorite)
        self._commit()
        self.session.refresh(favorite)
        return favorite

    def delete(self, favorite_id: str) -> None:
        favorite = self.session.get(Favorite, favorite_id)
        if favorite is None:
            raise StoreConflictError("Favorite was changed by another request")
        self.session.delete(favorite)
        self._commit()

    def count_for_post(self, post_id: str) -> int:
        try:
            return self.session.scalar(
                select(func.count(Favorite.id)).where(Favorite.post_id == post_id)
            ) or 0
        except SQLAlchemyError:
            logger.exception("Failed to count favorites of post %s", post_id)
            self.session.rollback()
            return 0

    def list_with_posts(self, identity: Identity) -> List[Tuple[Favorite, Optional[Post]]]:
        """The identity's favorites, newest first, with the post each one points at"""
        return list(self.session.execute(
            select(Favorite, Post)
            .outerjoin(Post, Post.id == Favorite.post_id)
            .where(Favorite.user_identifier == identity.value)
            .order_by(Favorite.created_at.desc())
        ).tuples())

    def delete_for_post(self, post_id: str) -> int:
        return self.session.query(Favorite).filter(Favorite.post_id == post_id).delete(synchronize_session=False)

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("Favorite write rejected by a constraint: %s", e.orig)
            raise StoreConflictError("Post is already in your favorites") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Favorite write failed: %s", e)
            raise StoreError("Failed to save the favorite") from e
