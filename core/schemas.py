"""Positional record schemas and their identifiers.

Field order is significant: raw rows returned by the event log are decoded
strictly by position.
"""

import hashlib
from functools import lru_cache

SCHEMA_NAMES = ("interactions", "posts", "play_events")

SCHEMA_STRINGS = {
    "interactions": (
        "uint256 id, uint256 timestamp, uint8 interactionType, uint256 targetId, "
        "uint8 targetType, address fromUser, string content, uint256 parentId, uint256 tipAmount"
    ),
    "posts": (
        "uint256 id, uint256 timestamp, string content, uint256 quotedPostId, "
        "uint256 replyToId, address author, bool isDeleted"
    ),
    "play_events": (
        "uint256 id, uint256 timestamp, uint32 tokenId, address listener, "
        "uint32 duration, string source"
    ),
}


def field_names(schema_name: str) -> list[str]:
    return [part.strip().split(" ")[1] for part in SCHEMA_STRINGS[schema_name].split(",")]


def field_count(schema_name: str) -> int:
    return len(field_names(schema_name))


@lru_cache(maxsize=None)
def get_schema_id(schema_name: str) -> str:
    """Identifier of a schema, derived from its schema string on first use."""
    if schema_name not in SCHEMA_STRINGS:
        raise KeyError(f"Unknown schema: {schema_name}")
    digest = hashlib.sha3_256(SCHEMA_STRINGS[schema_name].encode("utf-8")).hexdigest()
    return f"0x{digest}"
