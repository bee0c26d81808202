"""Decoding of raw positional rows into typed records.

Every decoder returns a ``DecodeResult`` instead of raising: a row with the
wrong shape or an uncoercible field becomes a rejection with a reason, and the
rest of the batch is decoded normally.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, List, Optional, Sequence, TypeVar

import structlog
from pydantic import ValidationError

from core.config import get_settings
from core.exceptions import MalformedRecord, UnknownEnumValue
from core.metrics import records_rejected_total
from core.schemas import field_count
from models import Interaction, InteractionType, PlayEvent, Post, TargetType

logger = structlog.get_logger(__name__)

UINT64_MAX = 2 ** 64 - 1
ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")

T = TypeVar("T")


@dataclass(frozen=True)
class Rejection:
    schema: str
    kind: str  # MALFORMED_RECORD or UNKNOWN_ENUM_VALUE
    reason: str
    row: Any = None


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    record: Optional[T] = None
    rejection: Optional[Rejection] = None

    @property
    def ok(self) -> bool:
        return self.rejection is None


@dataclass
class BatchResult(Generic[T]):
    records: List[T] = field(default_factory=list)
    rejections: List[Rejection] = field(default_factory=list)


def unwrap(value: Any) -> Any:
    """Strip ``{"value": ...}`` envelopes some stream clients wrap decoded fields in."""
    while isinstance(value, dict) and "value" in value:
        value = value["value"]
    return value


def to_uint(value: Any, name: str, maximum: Optional[int] = UINT64_MAX) -> int:
    value = unwrap(value)
    if isinstance(value, bool) or value is None:
        raise MalformedRecord(f"{name}: expected integer, got {value!r}")
    if isinstance(value, int):
        result = value
    elif isinstance(value, float):
        if not value.is_integer():
            raise MalformedRecord(f"{name}: expected integer, got {value!r}")
        result = int(value)
    elif isinstance(value, str):
        text = value.strip()
        try:
            result = int(text, 16) if text.lower().startswith("0x") else int(text)
        except ValueError:
            raise MalformedRecord(f"{name}: expected integer, got {value!r}")
    else:
        raise MalformedRecord(f"{name}: expected integer, got {type(value).__name__}")
    if result < 0 or (maximum is not None and result > maximum):
        raise MalformedRecord(f"{name}: {result} out of range")
    return result


def to_address(value: Any, name: str) -> str:
    value = unwrap(value)
    if not isinstance(value, str) or not ADDRESS_RE.fullmatch(value):
        raise MalformedRecord(f"{name}: invalid address {value!r}")
    return value


def to_text(value: Any, name: str, max_length: int) -> str:
    value = unwrap(value)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise MalformedRecord(f"{name}: expected string, got {type(value).__name__}")
    if len(value) > max_length:
        raise MalformedRecord(f"{name}: {len(value)} characters exceeds limit of {max_length}")
    return value


def to_bool(value: Any, name: str) -> bool:
    value = unwrap(value)
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise MalformedRecord(f"{name}: expected boolean, got {value!r}")


def to_enum(enum_cls, value: Any, name: str):
    number = to_uint(value, name, maximum=None)
    try:
        return enum_cls(number)
    except ValueError:
        raise UnknownEnumValue(f"{name}: {number} is not a valid {enum_cls.__name__}")


def _build_interaction(row: Sequence[Any]) -> Interaction:
    max_length = get_settings().MAX_CONTENT_LENGTH
    return Interaction(
        id=to_uint(row[0], "id"),
        timestamp=to_uint(row[1], "timestamp"),
        type=to_enum(InteractionType, row[2], "type"),
        target_id=to_uint(row[3], "targetId"),
        target_type=to_enum(TargetType, row[4], "targetType"),
        from_user=to_address(row[5], "fromUser"),
        content=to_text(row[6], "content", max_length),
        parent_id=to_uint(row[7], "parentId"),
        tip_amount=to_uint(row[8], "tipAmount", maximum=None),
    )


def _build_post(row: Sequence[Any]) -> Post:
    max_length = get_settings().MAX_CONTENT_LENGTH
    return Post(
        id=to_uint(row[0], "id"),
        timestamp=to_uint(row[1], "timestamp"),
        content=to_text(row[2], "content", max_length),
        quoted_post_id=to_uint(row[3], "quotedPostId"),
        reply_to_id=to_uint(row[4], "replyToId"),
        author=to_address(row[5], "author"),
        is_deleted=to_bool(row[6], "isDeleted"),
    )


def _build_play_event(row: Sequence[Any]) -> PlayEvent:
    return PlayEvent(
        id=to_uint(row[0], "id"),
        timestamp=to_uint(row[1], "timestamp"),
        token_id=to_uint(row[2], "tokenId"),
        listener=to_address(row[3], "listener"),
        duration=to_uint(row[4], "duration"),
        source=to_text(row[5], "source", get_settings().MAX_CONTENT_LENGTH),
    )


BUILDERS: dict[str, Callable[[Sequence[Any]], Any]] = {
    "interactions": _build_interaction,
    "posts": _build_post,
    "play_events": _build_play_event,
}


def _reject(schema: str, kind: str, reason: str, row: Any) -> DecodeResult:
    logger.warning("record_rejected", schema=schema, kind=kind, reason=reason)
    records_rejected_total.labels(schema=schema, kind=kind).inc()
    return DecodeResult(rejection=Rejection(schema=schema, kind=kind, reason=reason, row=row))


def decode_row(schema: str, row: Any) -> DecodeResult:
    if not isinstance(row, (list, tuple)):
        return _reject(schema, "MALFORMED_RECORD", f"expected a positional row, got {type(row).__name__}", row)
    expected = field_count(schema)
    if len(row) != expected:
        return _reject(schema, "MALFORMED_RECORD", f"expected {expected} fields, got {len(row)}", row)
    try:
        return DecodeResult(record=BUILDERS[schema](row))
    except (MalformedRecord, UnknownEnumValue) as e:
        return _reject(schema, e.error_code, e.message, row)
    except ValidationError as e:
        return _reject(schema, "MALFORMED_RECORD", str(e), row)


def decode_interaction(row: Any) -> DecodeResult[Interaction]:
    return decode_row("interactions", row)


def decode_post(row: Any) -> DecodeResult[Post]:
    return decode_row("posts", row)


def decode_play_event(row: Any) -> DecodeResult[PlayEvent]:
    return decode_row("play_events", row)


def decode_batch(schema: str, rows: Sequence[Any]) -> BatchResult:
    """Decode every row, keeping one copy of records that are identical in every field."""
    result = BatchResult()
    seen = set()
    for row in rows:
        decoded = decode_row(schema, row)
        if not decoded.ok:
            result.rejections.append(decoded.rejection)
            continue
        key = tuple(decoded.record.model_dump().values())
        if key in seen:
            continue
        seen.add(key)
        result.records.append(decoded.record)
    if result.rejections:
        logger.info("batch_decoded", schema=schema, accepted=len(result.records), rejected=len(result.rejections))
    return result


def _version_key(post: Post) -> tuple:
    return (
        post.timestamp,
        post.content,
        post.quoted_post_id,
        post.reply_to_id,
        post.author.lower(),
        post.author,
    )


def collapse_post_versions(posts: Sequence[Post]) -> List[Post]:
    """Reduce the published versions of each post id to its current state.

    A deleted version always wins; otherwise the newest version wins. Versions
    sharing a timestamp are ordered by their remaining fields.
    """
    current: dict[int, Post] = {}
    for post in posts:
        existing = current.get(post.id)
        if existing is None:
            current[post.id] = post
        elif post.is_deleted != existing.is_deleted:
            if post.is_deleted:
                current[post.id] = post
        elif _version_key(post) > _version_key(existing):
            current[post.id] = post
    return list(current.values())
