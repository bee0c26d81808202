from typing import Dict, Iterable, Optional

from models import Interaction, InteractionType, PostStats, Relation
from services.toggles import ToggleLedger, sort_chronologically

POST_RELATIONS = (Relation.LIKE, Relation.REPOST, Relation.BOOKMARK)


def aggregate_interactions(
    interactions: Iterable[Interaction],
    viewer: Optional[str] = None,
) -> Dict[int, PostStats]:
    """Fold interaction records into per-target stats.

    Records are processed in chronological order, so the result is the same
    for any arrival order. Like/repost/bookmark counts are the size of the
    membership set at the end of the fold. Types other than the toggles and
    COMMENT are left to other consumers.
    """
    viewer_key = viewer.lower() if viewer else None
    ledger = ToggleLedger(POST_RELATIONS)
    stats_map: Dict[int, PostStats] = {}

    for interaction in sort_chronologically(interactions):
        if interaction.type == InteractionType.COMMENT:
            stats = stats_map.setdefault(interaction.target_id, PostStats())
            stats.comments += 1
            if interaction.is_top_level:
                stats.top_comments.append(interaction)
            continue

        state = ledger.apply(interaction)
        if state is None:
            continue
        stats = stats_map.setdefault(interaction.target_id, PostStats())
        if viewer_key and interaction.user_key == viewer_key:
            if interaction.type in (InteractionType.LIKE, InteractionType.UNLIKE):
                stats.user_liked = state
            elif interaction.type in (InteractionType.REPOST, InteractionType.UNREPOST):
                stats.user_reposted = state
            else:
                stats.user_bookmarked = state

    for target_id, stats in stats_map.items():
        stats.liked_by = ledger.members(target_id, Relation.LIKE)
        stats.reposted_by = ledger.members(target_id, Relation.REPOST)
        stats.bookmarked_by = ledger.members(target_id, Relation.BOOKMARK)
        stats.likes = len(stats.liked_by)
        stats.reposts = len(stats.reposted_by)
        stats.bookmarks = len(stats.bookmarked_by)

    return stats_map


def sum_tips(interactions: Iterable[Interaction]) -> Dict[int, int]:
    """Total tip amount (wei) received per target."""
    totals: Dict[int, int] = {}
    for interaction in interactions:
        if interaction.type == InteractionType.TIP:
            totals[interaction.target_id] = totals.get(interaction.target_id, 0) + interaction.tip_amount
    return totals


def interactions_for_targets(interactions: Iterable[Interaction], target_ids: Iterable[int]) -> list[Interaction]:
    wanted = set(target_ids)
    return [i for i in interactions if i.target_id in wanted]
