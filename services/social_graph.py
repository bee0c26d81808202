"""Follower graph and per-user bookmark lists, rebuilt from interaction records."""

from typing import Dict, Iterable, List, Tuple

from models import Interaction, InteractionType, Relation, TargetType
from services.normalizer import ADDRESS_RE
from services.toggles import ToggleLedger, sort_chronologically

FOLLOW_TYPES = (InteractionType.FOLLOW, InteractionType.UNFOLLOW)
BOOKMARK_TYPES = (InteractionType.BOOKMARK, InteractionType.UNBOOKMARK)


def user_target_id(address: str) -> int:
    """Numeric target id of a user: the first 16 hex digits of the address."""
    return int(address[2:18], 16)


def is_consistent_follow(event: Interaction) -> bool:
    """A follow event names the followed address, and its target id is derived from it."""
    return (
        event.target_type == TargetType.USER
        and ADDRESS_RE.fullmatch(event.content) is not None
        and event.target_id == user_target_id(event.content)
    )


def _follow_events(interactions: Iterable[Interaction]) -> List[Interaction]:
    return [i for i in interactions if i.type in FOLLOW_TYPES and is_consistent_follow(i)]


def followers(address: str, interactions: Iterable[Interaction]) -> List[str]:
    target = user_target_id(address)
    ledger = ToggleLedger([Relation.FOLLOW]).fold(
        i for i in _follow_events(interactions) if i.target_id == target
    )
    return ledger.member_keys(target, Relation.FOLLOW)


def following(address: str, interactions: Iterable[Interaction]) -> List[str]:
    """Addresses the user currently follows, in the order they were followed."""
    user = address.lower()
    state: Dict[int, Tuple[bool, str]] = {}
    for event in sort_chronologically(i for i in _follow_events(interactions) if i.user_key == user):
        active = event.type == InteractionType.FOLLOW
        previous = state.get(event.target_id)
        if previous is not None and previous[0] == active:
            continue
        state.pop(event.target_id, None)
        state[event.target_id] = (active, event.content.lower())
    return [followed for active, followed in state.values() if active]


def is_following(follower: str, address: str, interactions: Iterable[Interaction]) -> bool:
    return follower.lower() in followers(address, interactions)


def bookmarked_post_ids(user: str, interactions: Iterable[Interaction]) -> List[int]:
    """Posts the user has bookmarked and not removed, most recently bookmarked first."""
    user_key = user.lower()
    events = [i for i in interactions if i.type in BOOKMARK_TYPES and i.user_key == user_key]
    ledger = ToggleLedger([Relation.BOOKMARK])
    bookmarked_at: Dict[int, int] = {}
    for event in sort_chronologically(events):
        was_active = ledger.is_active(event.target_id, Relation.BOOKMARK, user_key)
        if ledger.apply(event) and not was_active:
            bookmarked_at[event.target_id] = event.timestamp
    active = [t for t in ledger.targets() if ledger.is_active(t, Relation.BOOKMARK, user_key)]
    return sorted(active, key=lambda t: (bookmarked_at[t], t), reverse=True)


def follower_count(address: str, interactions: Iterable[Interaction]) -> int:
    return len(followers(address, interactions))


def following_count(address: str, interactions: Iterable[Interaction]) -> int:
    return len(following(address, interactions))
