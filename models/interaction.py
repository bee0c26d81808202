from sqlmodel import SQLModel, Field
from enum import Enum


class InteractionType(int, Enum):
    LIKE = 0
    UNLIKE = 1
    COMMENT = 2
    REPOST = 3
    UNREPOST = 4
    DELETE = 5
    BOOKMARK = 6
    UNBOOKMARK = 7
    TIP = 8
    COLLECT = 9
    UNCOLLECT = 10
    FOLLOW = 11
    UNFOLLOW = 12
    SAVE = 13
    UNSAVE = 14


class TargetType(int, Enum):
    POST = 0
    COMMENT = 1
    USER = 2
    ALBUM = 3
    SONG = 4
    PLAYLIST = 5


class Relation(str, Enum):
    """Boolean user/target relations that are switched on and off by paired events."""
    LIKE = "like"
    REPOST = "repost"
    BOOKMARK = "bookmark"
    FOLLOW = "follow"


# activate/deactivate event types per relation
TOGGLE_PAIRS: dict[Relation, tuple[InteractionType, InteractionType]] = {
    Relation.LIKE: (InteractionType.LIKE, InteractionType.UNLIKE),
    Relation.REPOST: (InteractionType.REPOST, InteractionType.UNREPOST),
    Relation.BOOKMARK: (InteractionType.BOOKMARK, InteractionType.UNBOOKMARK),
    Relation.FOLLOW: (InteractionType.FOLLOW, InteractionType.UNFOLLOW),
}


class Interaction(SQLModel):
    id: int
    timestamp: int  # milliseconds
    type: InteractionType
    target_id: int
    target_type: TargetType = TargetType.POST
    from_user: str
    content: str = ""
    parent_id: int = 0  # 0 = top-level
    tip_amount: int = 0  # wei

    @property
    def user_key(self) -> str:
        return self.from_user.lower()

    @property
    def is_top_level(self) -> bool:
        return self.parent_id == 0


class InteractionCreate(SQLModel):
    type: InteractionType
    target_id: int
    target_type: TargetType = TargetType.POST
    from_user: str
    content: str = ""
    parent_id: int = 0
    tip_amount: int = Field(default=0, ge=0)
    publisher: str | None = None  # writer identity, defaults to from_user
