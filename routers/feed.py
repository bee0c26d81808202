from typing import List, Optional
from fastapi import APIRouter, HTTPException, Query
import logging

from cache import cache_response
from core.config import get_settings
from dependencies import ServiceDep
from models import CommentThread, FeedPage, FeedPost, PostStats

router = APIRouter()
settings = get_settings()
logger = logging.getLogger(__name__)


@router.get("/feed", response_model=FeedPage)
@cache_response()
async def get_feed(
    service: ServiceDep,
    page: int = Query(0, ge=0),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    viewer: Optional[str] = None,
):
    """Live posts, newest first, with counts, viewer flags and quoted posts"""
    return await service.get_feed(page, page_size, viewer)


@router.get("/posts/{post_id}", response_model=FeedPost)
async def get_post(post_id: int, service: ServiceDep, viewer: Optional[str] = None):
    post = await service.get_post(post_id, viewer)
    if post is None:
        raise HTTPException(status_code=404, detail="Post not found")
    return post


@router.get("/posts/{post_id}/stats", response_model=PostStats)
async def get_post_stats(post_id: int, service: ServiceDep, viewer: Optional[str] = None):
    """Like, repost and bookmark state of a post, including who is in each set"""
    return await service.get_post_stats(post_id, viewer)


@router.get("/posts/{post_id}/comments", response_model=List[CommentThread])
async def get_comments(post_id: int, service: ServiceDep):
    return await service.get_comments(post_id)
