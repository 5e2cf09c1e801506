"""Derived reaction counts. Nothing here is stored; every reload recomputes it."""
from collections import Counter
from typing import Iterable, List, Optional, Sequence

from mythboard.core.identity import Identity
from mythboard.schemas.reaction import ReactionCounts


def aggregate(rows: Optional[Iterable]) -> ReactionCounts:
    """Group rows by reaction type.

    Works on ORM rows or anything with a `type` attribute. Missing rows are a
    valid empty state, types nobody picked are left out.
    """
    counts = Counter(row.type for row in rows or ())
    return ReactionCounts(counts_by_type=dict(counts), total_count=sum(counts.values()))


def counts_from_mapping(counts_by_type: Optional[dict]) -> ReactionCounts:
    counts = {reaction_type: count for reaction_type, count in (counts_by_type or {}).items() if count > 0}
    return ReactionCounts(counts_by_type=counts, total_count=sum(counts.values()))


def mine(rows: Optional[Iterable], identity: Optional[Identity], order: Sequence[str] = ()) -> List[str]:
    """Reaction types the identity holds, in configured order"""
    if identity is None:
        return []
    held = {row.type for row in rows or () if row.user_identifier == identity.value}
    ordered = [reaction_type for reaction_type in order if reaction_type in held]
    return ordered + sorted(held.difference(ordered))
