from .interaction import Interaction, InteractionCreate, InteractionType, TargetType, Relation, TOGGLE_PAIRS
from .post import Post, PostCreate, PostDelete, PostStats, CommentThread, FeedPost, FeedPage
from .play_event import PlayEvent, PlayEventCreate, TrendingEntry, PlayRecordResult
from .response import BasicResponse, RecordWriteResponse, AddressListResponse
from .log import RawRecord

__all__ = [
    "Interaction", "InteractionCreate", "InteractionType", "TargetType", "Relation", "TOGGLE_PAIRS",
    "Post", "PostCreate", "PostDelete", "PostStats", "CommentThread", "FeedPost", "FeedPage",
    "PlayEvent", "PlayEventCreate", "TrendingEntry", "PlayRecordResult",
    "BasicResponse", "RecordWriteResponse", "AddressListResponse",
    "RawRecord",
]
