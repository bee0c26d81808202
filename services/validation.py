"""Write-time validation and construction of records before they are appended to the log."""

import hashlib
import random
from typing import Any, List, Optional

from core.config import get_settings
from core.exceptions import ValidationFailure
from models import (
    Interaction,
    InteractionCreate,
    InteractionType,
    PlayEvent,
    PlayEventCreate,
    Post,
    PostCreate,
    TargetType,
)
from services.normalizer import ADDRESS_RE
from services.social_graph import FOLLOW_TYPES, user_target_id
from services.toggles import TOGGLE_EVENTS
from services.trending import now_ms

ID_MASK = 2 ** 63 - 1


def _require_address(value: Optional[str], field: str) -> None:
    if not value:
        raise ValidationFailure(f"{field} is required", details={"field": field})
    if not ADDRESS_RE.fullmatch(value):
        raise ValidationFailure(f"{field} is not a valid address", details={"field": field, "value": value})


def _check_length(content: str, field: str = "content") -> None:
    limit = get_settings().MAX_CONTENT_LENGTH
    if len(content) > limit:
        raise ValidationFailure(
            f"{field} exceeds {limit} characters",
            details={"field": field, "length": len(content), "limit": limit},
        )


def _validate_follow(data: InteractionCreate) -> None:
    if data.target_type != TargetType.USER:
        raise ValidationFailure(
            "Follows must target a user", details={"field": "target_type", "value": int(data.target_type)}
        )
    _require_address(data.content, "content")
    expected = user_target_id(data.content)
    if data.target_id != expected:
        raise ValidationFailure(
            "target_id does not match the followed address",
            details={"field": "target_id", "value": data.target_id, "expected": expected},
        )


def validate_interaction(data: InteractionCreate) -> None:
    _require_address(data.from_user, "from_user")
    if not data.target_id:
        raise ValidationFailure("target_id is required", details={"field": "target_id"})
    if data.type == InteractionType.COMMENT and not data.content.strip():
        raise ValidationFailure("Comment content cannot be empty", details={"field": "content"})
    if data.type == InteractionType.TIP and data.tip_amount <= 0:
        raise ValidationFailure("Tip amount must be positive", details={"field": "tip_amount"})
    _check_length(data.content)
    if data.type in FOLLOW_TYPES:
        _validate_follow(data)
    if data.publisher:
        _require_address(data.publisher, "publisher")


def validate_post(data: PostCreate) -> None:
    _require_address(data.author, "author")
    if not data.content.strip():
        raise ValidationFailure("Post content cannot be empty", details={"field": "content"})
    _check_length(data.content)
    if data.publisher:
        _require_address(data.publisher, "publisher")


def validate_play_event(data: PlayEventCreate) -> None:
    if data.token_id <= 0:
        raise ValidationFailure("token_id must be positive", details={"field": "token_id"})
    _require_address(data.listener, "listener")
    if data.duration < 0:
        raise ValidationFailure("duration cannot be negative", details={"field": "duration"})
    if data.publisher:
        _require_address(data.publisher, "publisher")


def interaction_id(type_: InteractionType, from_user: str, target_id: int, timestamp: int) -> int:
    """Id of a new interaction.

    Toggle events get the same id for the same type, target and user, so a
    user's repeated likes of a post share one id. Other types include the
    timestamp.
    """
    parts = [str(int(type_)), str(target_id), from_user.lower()]
    if type_ not in TOGGLE_EVENTS:
        parts.append(str(timestamp))
    digest = hashlib.sha256("_".join(parts).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") & ID_MASK


def build_interaction(data: InteractionCreate, timestamp: Optional[int] = None) -> Interaction:
    validate_interaction(data)
    timestamp = now_ms() if timestamp is None else timestamp
    return Interaction(
        id=interaction_id(data.type, data.from_user, data.target_id, timestamp),
        timestamp=timestamp,
        type=data.type,
        target_id=data.target_id,
        target_type=data.target_type,
        from_user=data.from_user,
        content=data.content,
        parent_id=data.parent_id,
        tip_amount=data.tip_amount,
    )


def build_post(data: PostCreate, timestamp: Optional[int] = None) -> Post:
    validate_post(data)
    timestamp = now_ms() if timestamp is None else timestamp
    return Post(
        id=timestamp,
        timestamp=timestamp,
        content=data.content,
        author=data.author,
        quoted_post_id=data.quoted_post_id,
        reply_to_id=data.reply_to_id,
    )


def build_deleted_version(post: Post, timestamp: Optional[int] = None) -> Post:
    timestamp = now_ms() if timestamp is None else timestamp
    return post.model_copy(update={"is_deleted": True, "timestamp": max(timestamp, post.timestamp)})


def build_play_event(data: PlayEventCreate, timestamp: Optional[int] = None) -> PlayEvent:
    validate_play_event(data)
    timestamp = now_ms() if timestamp is None else timestamp
    return PlayEvent(
        id=timestamp * 1000 + random.randint(0, 999),
        timestamp=timestamp,
        token_id=data.token_id,
        listener=data.listener,
        duration=data.duration,
        source=data.source,
    )


def encode_interaction(record: Interaction) -> List[Any]:
    return [
        record.id, record.timestamp, int(record.type), record.target_id, int(record.target_type),
        record.from_user, record.content, record.parent_id, record.tip_amount,
    ]


def encode_post(record: Post) -> List[Any]:
    return [
        record.id, record.timestamp, record.content, record.quoted_post_id,
        record.reply_to_id, record.author, record.is_deleted,
    ]


def encode_play_event(record: PlayEvent) -> List[Any]:
    return [record.id, record.timestamp, record.token_id, record.listener, record.duration, record.source]
