"""Reaction toggling.

Single policy, per (identity, target):

    Unreacted      --select(t)-->  ReactedAs(t)    insert
    ReactedAs(t)   --select(t)-->  Unreacted       delete
    ReactedAs(t)   --select(u)-->  ReactedAs(u)    update type in place

Multi policy: every type is its own Unreacted/ReactedAs pair keyed by
(identity, target, type), so select(t) only ever inserts or deletes.

Counts are reloaded after every mutation attempt, failed ones included, so
callers always render store truth.
"""
import logging
from typing import Optional, Sequence

from mythboard.core.config import DEFAULT_REACTION_TYPES, ReactionPolicy
from mythboard.core.errors import InvalidReactionType, ReactionToggleError, StoreError
from mythboard.core.identity import Identity
from mythboard.core.locks import KeyedLock
from mythboard.core.targets import Target
from mythboard.models.reaction import SINGLE_SLOT
from mythboard.repositories.reaction import ReactionRepository
from mythboard.schemas.reaction import ReactionSummary
from mythboard.services.aggregation import counts_from_mapping, mine

logger = logging.getLogger(__name__)

# shared by every engine of the process, engines are built per request
toggle_locks = KeyedLock()


class ReactionToggleEngine:
    def __init__(
        self,
        repository: ReactionRepository,
        policy: ReactionPolicy = ReactionPolicy.SINGLE,
        allowed_types: Sequence[str] = DEFAULT_REACTION_TYPES,
        locks: Optional[KeyedLock] = None
    ):
        self.repository = repository
        self.policy = ReactionPolicy(policy)
        self.allowed_types = list(allowed_types)
        self.locks = locks if locks is not None else toggle_locks

    def validate(self, reaction_type: str) -> str:
        if reaction_type not in self.allowed_types:
            raise InvalidReactionType(
                f"Unknown reaction type {reaction_type!r}, expected one of {', '.join(self.allowed_types)}"
            )
        return reaction_type

    def select(self, identity: Identity, target: Target, reaction_type: str) -> ReactionSummary:
        """Toggle `reaction_type` for the identity on the target and return the reloaded summary"""
        self.validate(reaction_type)
        with self.locks.hold((identity.value, target.key)):
            try:
                if self.policy is ReactionPolicy.MULTI:
                    self._toggle_membership(identity, target, reaction_type)
                else:
                    self._toggle_single(identity, target, reaction_type)
            except StoreError as e:
                logger.warning("Reaction %s by %s on %s failed: %s", reaction_type, identity, target, e.detail)
                raise ReactionToggleError(e, self.summary(target, identity)) from e
            return self.summary(target, identity)

    def _toggle_single(self, identity: Identity, target: Target, reaction_type: str) -> None:
        existing = self.repository.find_own(identity, target)
        if existing is None:
            self.repository.insert(identity, target, reaction_type, SINGLE_SLOT)
        elif existing.type == reaction_type:
            self.repository.remove_or_update(existing.id, None)
        else:
            self.repository.remove_or_update(existing.id, reaction_type)

    def _toggle_membership(self, identity: Identity, target: Target, reaction_type: str) -> None:
        existing = self.repository.find_own(identity, target, reaction_type)
        if existing is None:
            self.repository.insert(identity, target, reaction_type, reaction_type)
        else:
            self.repository.remove_or_update(existing.id, None)

    def active_types(self, identity: Optional[Identity], target: Target) -> list:
        """ReactedAs types of the identity; empty means Unreacted"""
        if identity is None:
            return []
        return mine(self.repository.list_own(identity, target), identity, self.allowed_types)

    def summary(self, target: Target, identity: Optional[Identity] = None) -> ReactionSummary:
        counts = counts_from_mapping(self.repository.count_by_target(target))
        return ReactionSummary(
            target=target.key,
            counts_by_type=counts.counts_by_type,
            total_count=counts.total_count,
            mine=self.active_types(identity, target),
            policy=self.policy
        )
