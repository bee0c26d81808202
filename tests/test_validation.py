import pytest
from conftest import ALICE, BOB

from core.exceptions import ValidationFailure
from models import InteractionCreate, InteractionType, PlayEventCreate, PostCreate, TargetType
from services.normalizer import decode_interaction, decode_play_event, decode_post
from services.social_graph import user_target_id
from services.validation import (
    build_deleted_version,
    build_interaction,
    build_play_event,
    build_post,
    encode_interaction,
    encode_play_event,
    encode_post,
    interaction_id,
)


@pytest.mark.parametrize("data", [
    InteractionCreate(type=InteractionType.LIKE, target_id=1, from_user=""),
    InteractionCreate(type=InteractionType.LIKE, target_id=0, from_user=ALICE),
    InteractionCreate(type=InteractionType.COMMENT, target_id=1, from_user=ALICE, content="   "),
    InteractionCreate(type=InteractionType.COMMENT, target_id=1, from_user=ALICE, content="x" * 5001),
    InteractionCreate(type=InteractionType.TIP, target_id=1, from_user=ALICE, tip_amount=0),
    InteractionCreate(type=InteractionType.LIKE, target_id=1, from_user=ALICE, publisher="nobody"),
])
def test_invalid_interactions_rejected(data):
    with pytest.raises(ValidationFailure):
        build_interaction(data)


def follow_request(type_=InteractionType.FOLLOW, **overrides):
    data = {
        "type": type_,
        "target_id": user_target_id(BOB),
        "target_type": TargetType.USER,
        "from_user": ALICE,
        "content": BOB,
    }
    data.update(overrides)
    return InteractionCreate(**data)


@pytest.mark.parametrize("type_", [InteractionType.FOLLOW, InteractionType.UNFOLLOW])
@pytest.mark.parametrize("overrides", [
    {"content": ""},
    {"content": "bob"},
    {"content": BOB + "\n"},
    {"target_type": TargetType.POST},
    {"target_id": user_target_id(ALICE)},
    {"target_id": 1},
])
def test_inconsistent_follows_rejected(type_, overrides):
    with pytest.raises(ValidationFailure):
        build_interaction(follow_request(type_, **overrides))


def test_consistent_follow_accepted():
    interaction = build_interaction(follow_request(), timestamp=1000)
    assert interaction.target_id == user_target_id(BOB)
    assert interaction.content == BOB


def test_invalid_post_and_play():
    with pytest.raises(ValidationFailure):
        build_post(PostCreate(content="", author=ALICE))
    with pytest.raises(ValidationFailure):
        build_post(PostCreate(content="hello", author="alice"))
    with pytest.raises(ValidationFailure):
        build_play_event(PlayEventCreate(token_id=0, listener=ALICE, duration=10))
    with pytest.raises(ValidationFailure):
        build_play_event(PlayEventCreate(token_id=1, listener="", duration=10))


def test_toggle_ids_are_deterministic():
    first = interaction_id(InteractionType.LIKE, ALICE, 5, 100)
    assert first == interaction_id(InteractionType.LIKE, ALICE.upper().replace("0X", "0x"), 5, 999)
    assert first != interaction_id(InteractionType.UNLIKE, ALICE, 5, 100)
    assert first != interaction_id(InteractionType.LIKE, BOB, 5, 100)


def test_comment_ids_include_timestamp():
    assert interaction_id(InteractionType.COMMENT, ALICE, 5, 100) != interaction_id(InteractionType.COMMENT, ALICE, 5, 101)


def test_encoded_rows_decode_to_same_records():
    interaction = build_interaction(
        InteractionCreate(type=InteractionType.COMMENT, target_id=3, from_user=ALICE, content="hi"),
        timestamp=1000,
    )
    post = build_post(PostCreate(content="hello", author=BOB, quoted_post_id=7), timestamp=2000)
    play = build_play_event(PlayEventCreate(token_id=4, listener=ALICE, duration=30), timestamp=3000)

    assert decode_interaction(encode_interaction(interaction)).record == interaction
    assert decode_post(encode_post(post)).record == post
    assert decode_play_event(encode_play_event(play)).record == play


def test_deleted_version_supersedes_original():
    post = build_post(PostCreate(content="hello", author=BOB), timestamp=2000)
    deleted = build_deleted_version(post, timestamp=1000)
    assert deleted.id == post.id
    assert deleted.is_deleted
    assert deleted.timestamp == 2000
