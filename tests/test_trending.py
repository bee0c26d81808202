from datetime import datetime

from conftest import ALICE, BOB, CAROL, DAVE

from services.trending import (
    DAY_MS,
    aggregate_play_counts,
    best_in_album,
    calculate_trending_score,
    get_trending,
    has_played_today,
    local_midnight_ms,
)

HOUR_MS = 60 * 60 * 1000
NOW = 1_700_000_000_000


def test_concentrated_recent_plays_outrank_spread_single_listener(make_play):
    listeners = [ALICE, BOB, CAROL, DAVE]
    token_a = [make_play(1, listeners[i % 4], NOW - HOUR_MS + i * 60_000) for i in range(10)]
    token_b = [make_play(2, ALICE, NOW - DAY_MS + i * (DAY_MS // 10)) for i in range(10)]
    events = token_a + token_b

    score_a = calculate_trending_score(1, events, DAY_MS, NOW)
    score_b = calculate_trending_score(2, events, DAY_MS, NOW)
    assert score_a > score_b

    ranked = get_trending(events, [2, 1], limit=10, window_ms=DAY_MS, now=NOW)
    assert [e.token_id for e in ranked] == [1, 2]
    assert ranked[0].unique_listeners == 4
    assert ranked[1].unique_listeners == 1


def test_score_matches_documented_formula(make_play):
    events = [make_play(1, ALICE, NOW - DAY_MS // 2), make_play(1, BOB, NOW - DAY_MS // 2)]
    # 2 plays, 2 listeners, average timestamp in the middle of the window
    expected = 2 * 0.7 + 2 * 0.3 + 5.0
    assert abs(calculate_trending_score(1, events, DAY_MS, NOW) - expected) < 1e-9


def test_events_outside_window_ignored(make_play):
    events = [make_play(1, ALICE, NOW - 2 * DAY_MS), make_play(1, ALICE, NOW + 1)]
    assert calculate_trending_score(1, events, DAY_MS, NOW) == 0.0


def test_listeners_compared_case_insensitively(make_play):
    events = [make_play(1, ALICE, NOW), make_play(1, ALICE.upper().replace("0X", "0x"), NOW)]
    ranked = get_trending(events, [1], window_ms=DAY_MS, now=NOW)
    assert ranked[0].unique_listeners == 1


def test_candidates_without_plays_rank_last_and_limit_applies(make_play):
    events = [make_play(3, ALICE, NOW - HOUR_MS)]
    ranked = get_trending(events, [1, 2, 3], limit=2, window_ms=DAY_MS, now=NOW)
    assert [e.token_id for e in ranked] == [3, 1]
    assert ranked[1].score == 0.0


def test_has_played_today(make_play):
    now = int(datetime(2024, 5, 10, 15, 0).timestamp() * 1000)
    midnight = local_midnight_ms(now)
    events = [make_play(1, ALICE, midnight + 1000), make_play(2, BOB, midnight - 1000)]

    assert has_played_today(events, 1, ALICE.upper().replace("0X", "0x"), now)
    assert not has_played_today(events, 1, BOB, now)
    assert not has_played_today(events, 2, BOB, now)


def test_local_midnight():
    now = int(datetime(2024, 5, 10, 15, 30).timestamp() * 1000)
    assert local_midnight_ms(now) == int(datetime(2024, 5, 10).timestamp() * 1000)


def test_play_counts_and_best_in_album(make_play):
    events = [make_play(1), make_play(2), make_play(2), make_play(3), make_play(3)]
    assert aggregate_play_counts(events) == {1: 1, 2: 2, 3: 2}
    assert best_in_album(events, [3, 2, 1]) == {"token_id": 3, "play_count": 2}
    assert best_in_album(events, [9]) == {"token_id": 9, "play_count": 0}
    assert best_in_album(events, []) is None
