from sqlmodel import Field, SQLModel
from typing import Optional, List

from .interaction import Interaction


class PostBase(SQLModel):
    content: str
    author: str
    quoted_post_id: int = 0  # 0 = not a quote
    reply_to_id: int = 0


class Post(PostBase):
    id: int
    timestamp: int  # milliseconds
    is_deleted: bool = False


class PostCreate(PostBase):
    publisher: str | None = None  # writer identity, defaults to author


class PostDelete(SQLModel):
    author: str
    publisher: str | None = None


class PostStats(SQLModel):
    likes: int = 0
    comments: int = 0
    reposts: int = 0
    bookmarks: int = 0
    user_liked: bool = False
    user_reposted: bool = False
    user_bookmarked: bool = False
    liked_by: List[str] = Field(default_factory=list)
    reposted_by: List[str] = Field(default_factory=list)
    bookmarked_by: List[str] = Field(default_factory=list)
    top_comments: List[Interaction] = Field(default_factory=list)


class CommentThread(Interaction):
    replies: List[Interaction] = Field(default_factory=list)


class FeedPost(Post):
    likes: int = 0
    comments: int = 0
    reposts: int = 0
    bookmarks: int = 0
    quotes: int = 0
    tips: int = 0
    is_liked: bool = False
    is_reposted: bool = False
    is_bookmarked: bool = False
    quoted_post: Optional["FeedPost"] = None


class FeedPage(SQLModel):
    page: int
    page_size: int
    total: int
    posts: List[FeedPost]


FeedPost.model_rebuild()
