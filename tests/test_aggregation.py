import itertools
import random

from conftest import ALICE, BOB, CAROL

from models import InteractionType, Relation
from services.aggregation import aggregate_interactions, sum_tips
from services.toggles import ToggleLedger

LIKE = InteractionType.LIKE
UNLIKE = InteractionType.UNLIKE


def snapshot(stats):
    return {
        target: (s.likes, s.reposts, s.bookmarks, s.comments, sorted(s.liked_by), sorted(s.reposted_by))
        for target, s in stats.items()
    }


def test_like_unlike_cancels(make_interaction):
    events = [make_interaction(LIKE, timestamp=1), make_interaction(UNLIKE, timestamp=2)]
    stats = aggregate_interactions(events)
    assert stats[1].likes == 0
    assert stats[1].liked_by == []


def test_relike_after_unlike(make_interaction):
    events = [
        make_interaction(LIKE, timestamp=1),
        make_interaction(UNLIKE, timestamp=2),
        make_interaction(LIKE, timestamp=3),
    ]
    stats = aggregate_interactions(events)
    assert stats[1].likes == 1
    assert stats[1].liked_by == [ALICE]


def test_repeated_activation_is_idempotent(make_interaction):
    events = [make_interaction(LIKE, timestamp=t) for t in (1, 2, 3)]
    assert aggregate_interactions(events)[1].likes == 1


def test_unlike_without_like_is_noop(make_interaction):
    stats = aggregate_interactions([make_interaction(UNLIKE, from_user=BOB)])
    assert stats[1].likes == 0


def test_same_user_differently_cased_counts_once(make_interaction):
    events = [
        make_interaction(LIKE, timestamp=1, from_user=ALICE.upper().replace("0X", "0x")),
        make_interaction(LIKE, timestamp=2, from_user=ALICE),
    ]
    stats = aggregate_interactions(events)
    assert stats[1].likes == 1


def test_result_does_not_depend_on_arrival_order(make_interaction):
    events = [
        make_interaction(LIKE, from_user=ALICE, timestamp=1),
        make_interaction(LIKE, from_user=BOB, timestamp=2),
        make_interaction(UNLIKE, from_user=ALICE, timestamp=3),
        make_interaction(InteractionType.REPOST, from_user=CAROL, timestamp=4),
        make_interaction(InteractionType.COMMENT, from_user=BOB, timestamp=5, content="nice"),
        make_interaction(LIKE, from_user=ALICE, timestamp=6, target_id=2),
    ]
    expected = snapshot(aggregate_interactions(events))
    for permutation in itertools.permutations(events):
        assert snapshot(aggregate_interactions(permutation)) == expected


def test_order_invariance_with_timestamp_ties(make_interaction):
    events = [
        make_interaction(LIKE, id=5, timestamp=10),
        make_interaction(UNLIKE, id=3, timestamp=10),
        make_interaction(LIKE, id=9, from_user=BOB, timestamp=10),
    ]
    expected = snapshot(aggregate_interactions(events))
    shuffled = list(events)
    for _ in range(20):
        random.shuffle(shuffled)
        assert snapshot(aggregate_interactions(shuffled)) == expected


def test_counts_match_membership(make_interaction):
    events = [
        make_interaction(LIKE, from_user=ALICE),
        make_interaction(LIKE, from_user=BOB),
        make_interaction(InteractionType.BOOKMARK, from_user=CAROL),
        make_interaction(InteractionType.UNBOOKMARK, from_user=CAROL),
        make_interaction(InteractionType.REPOST, from_user=BOB),
    ]
    stats = aggregate_interactions(events)[1]
    assert stats.likes == len(stats.liked_by) == 2
    assert stats.reposts == len(stats.reposted_by) == 1
    assert stats.bookmarks == len(stats.bookmarked_by) == 0


def test_viewer_flags_follow_latest_state(make_interaction):
    events = [
        make_interaction(LIKE, from_user=BOB),
        make_interaction(InteractionType.REPOST, from_user=BOB),
        make_interaction(InteractionType.UNREPOST, from_user=BOB),
        make_interaction(InteractionType.BOOKMARK, from_user=ALICE),
    ]
    stats = aggregate_interactions(events, viewer=BOB.upper().replace("0X", "0x"))[1]
    assert stats.user_liked is True
    assert stats.user_reposted is False
    assert stats.user_bookmarked is False


def test_comments_counted_and_top_level_listed(make_interaction):
    top = make_interaction(InteractionType.COMMENT, content="first")
    reply = make_interaction(InteractionType.COMMENT, content="reply", parent_id=top.id)
    stats = aggregate_interactions([reply, top])[1]
    assert stats.comments == 2
    assert [c.id for c in stats.top_comments] == [top.id]


def test_other_types_do_not_create_stats(make_interaction):
    stats = aggregate_interactions([make_interaction(InteractionType.COLLECT), make_interaction(InteractionType.SAVE)])
    assert stats == {}


def test_sum_tips(make_interaction):
    events = [
        make_interaction(InteractionType.TIP, tip_amount=10 ** 18),
        make_interaction(InteractionType.TIP, tip_amount=5, from_user=BOB),
        make_interaction(InteractionType.TIP, target_id=2, tip_amount=1),
        make_interaction(LIKE, tip_amount=100),
    ]
    assert sum_tips(events) == {1: 10 ** 18 + 5, 2: 1}


def test_ledger_keeps_activation_order(make_interaction):
    ledger = ToggleLedger().fold([
        make_interaction(LIKE, from_user=BOB, timestamp=2),
        make_interaction(LIKE, from_user=ALICE, timestamp=1),
    ])
    assert ledger.members(1, Relation.LIKE) == [ALICE, BOB]
    assert ledger.count(1, Relation.LIKE) == 2
    assert ledger.is_active(1, Relation.LIKE, ALICE.upper().replace("0X", "0x"))
