import logging
from typing import Dict, List, Optional, Protocol, Sequence

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from mythboard.core.errors import StoreConflictError, StoreError
from mythboard.core.identity import Identity
from mythboard.core.targets import Target
from mythboard.models.reaction import Reaction, SINGLE_SLOT
from mythboard.services.aggregation import aggregate

logger = logging.getLogger(__name__)


class ReactionRepository(Protocol):
    """Reaction row access; the toggle engine depends on this interface only"""

    def count_by_target(self, target: Target) -> Dict[str, int]:
        """Counts per reaction type, an empty mapping when the store can't be read"""
        ...

    def list_for_target(self, target: Target) -> List[Reaction]:
        ...

    def find_own(self, identity: Identity, target: Target, reaction_type: Optional[str] = None) -> Optional[Reaction]:
        """The identity's row on the target, scoped to one type when given"""
        ...

    def list_own(self, identity: Identity, target: Target) -> List[Reaction]:
        """All of the identity's rows on the target, empty when the store can't be read"""
        ...

    def insert(self, identity: Identity, target: Target, reaction_type: str, slot: str = SINGLE_SLOT) -> Reaction:
        """Raises StoreConflictError when the row would break a uniqueness constraint"""
        ...

    def remove_or_update(self, reaction_id: str, new_type: Optional[str]) -> None:
        """Delete the row when new_type is None, otherwise change its type"""
        ...


class SqlReactionRepository:
    """ReactionRepository over a SQLAlchemy session"""

    def __init__(self, session: Session):
        self.session = session

    def list_for_target(self, target: Target) -> List[Reaction]:
        return list(self.session.scalars(
            select(Reaction)
            .where(Reaction.target_key == target.key)
            .order_by(Reaction.created_at)
        ))

    def count_by_target(self, target: Target) -> Dict[str, int]:
        try:
            rows = self.list_for_target(target)
        except SQLAlchemyError:
            logger.exception("Failed to load reactions for %s", target)
            self.session.rollback()
            return {}
        return aggregate(rows).counts_by_type

    def find_own(self, identity: Identity, target: Target, reaction_type: Optional[str] = None) -> Optional[Reaction]:
        query = select(Reaction).where(
            Reaction.target_key == target.key,
            Reaction.user_identifier == identity.value
        )
        if reaction_type is not None:
            query = query.where(Reaction.type == reaction_type)
        try:
            return self.session.scalars(query.order_by(Reaction.created_at)).first()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Failed to look up reaction of %s on %s: %s", identity, target, e)
            raise StoreError("Failed to load your reaction") from e

    def list_own(self, identity: Identity, target: Target) -> List[Reaction]:
        try:
            return list(self.session.scalars(
                select(Reaction).where(
                    Reaction.target_key == target.key,
                    Reaction.user_identifier == identity.value
                )
            ))
        except SQLAlchemyError:
            logger.exception("Failed to load reactions of %s on %s", identity, target)
            self.session.rollback()
            return []

    def insert(self, identity: Identity, target: Target, reaction_type: str, slot: str = SINGLE_SLOT) -> Reaction:
        reaction = Reaction(
            post_id=target.post_id,
            image_url=target.image_url,
            target_key=target.key,
            type=reaction_type,
            slot=slot,
            user_identifier=identity.value
        )
        self.session.add(reaction)
        self._commit()
        self.session.refresh(reaction)
        return reaction

    def remove_or_update(self, reaction_id: str, new_type: Optional[str]) -> None:
        reaction = self.session.get(Reaction, reaction_id)
        if reaction is None:
            raise StoreConflictError("Reaction was changed by another request")
        if new_type is None:
            self.session.delete(reaction)
        else:
            reaction.type = new_type
        self._commit()

    def delete_for_post(self, post_id: str, image_urls: Sequence[str] = ()) -> int:
        """Drop reactions on a post and on its gallery images"""
        condition = Reaction.post_id == post_id
        if image_urls:
            condition = or_(condition, Reaction.image_url.in_(list(image_urls)))
        deleted = self.session.query(Reaction).filter(condition).delete(synchronize_session=False)
        return deleted

    def _commit(self) -> None:
        try:
            self.session.commit()
        except IntegrityError as e:
            self.session.rollback()
            logger.warning("Reaction write rejected by a constraint: %s", e.orig)
            raise StoreConflictError("You already reacted to this") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Reaction write failed: %s", e)
            raise StoreError("Failed to save the reaction") from e
