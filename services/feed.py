"""Assembly of the post feed from posts, interaction stats and quote counts."""

import logging
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

from models import FeedPage, FeedPost, Interaction, Post, PostStats
from services.aggregation import aggregate_interactions, interactions_for_targets, sum_tips

logger = logging.getLogger(__name__)

T = TypeVar("T")

QUOTE_MAX_DEPTH = 3


def count_quotes(posts: Iterable[Post]) -> Dict[int, int]:
    """Number of live posts quoting each post id."""
    counts: Dict[int, int] = {}
    for post in posts:
        if post.quoted_post_id and not post.is_deleted:
            counts[post.quoted_post_id] = counts.get(post.quoted_post_id, 0) + 1
    return counts


def filter_active(posts: Iterable[Post]) -> List[Post]:
    return [p for p in posts if not p.is_deleted]


def sort_newest_first(posts: Iterable[T]) -> List[T]:
    return sorted(posts, key=lambda p: (p.timestamp, p.id), reverse=True)


def paginate(items: Sequence[T], page: int, page_size: int) -> List[T]:
    start = page * page_size
    return list(items[start:start + page_size])


def merge_posts_with_stats(
    posts: Iterable[Post],
    stats_map: Dict[int, PostStats],
    quote_counts: Optional[Dict[int, int]] = None,
    tips: Optional[Dict[int, int]] = None,
) -> List[FeedPost]:
    quote_counts = quote_counts or {}
    tips = tips or {}
    merged = []
    for post in posts:
        feed_post = FeedPost(
            **post.model_dump(),
            quotes=quote_counts.get(post.id, 0),
            tips=tips.get(post.id, 0),
        )
        stats = stats_map.get(post.id)
        if stats is not None:
            feed_post.likes = stats.likes
            feed_post.comments = stats.comments
            feed_post.reposts = stats.reposts
            feed_post.bookmarks = stats.bookmarks
            feed_post.is_liked = stats.user_liked
            feed_post.is_reposted = stats.user_reposted
            feed_post.is_bookmarked = stats.user_bookmarked
        merged.append(feed_post)
    return merged


def enrich_with_quotes(
    posts: Iterable[FeedPost],
    index: Dict[int, FeedPost],
    max_depth: int = QUOTE_MAX_DEPTH,
) -> List[FeedPost]:
    """Attach ``quoted_post`` recursively, at most ``max_depth`` levels deep.

    Depth decreases on every step, so quote cycles terminate as well.
    """
    def enrich(post: FeedPost, depth: int) -> FeedPost:
        if depth >= max_depth or not post.quoted_post_id:
            return post
        quoted = index.get(post.quoted_post_id)
        if quoted is None:
            return post
        return post.model_copy(update={"quoted_post": enrich(quoted, depth + 1)})

    return [enrich(post, 0) for post in posts]


def assemble_feed(
    posts: Iterable[Post],
    interactions: Iterable[Interaction],
    page: int,
    page_size: int,
    viewer: Optional[str] = None,
    max_depth: int = QUOTE_MAX_DEPTH,
) -> FeedPage:
    """Build one page of the feed, newest posts first."""
    posts = list(posts)
    live = sort_newest_first(filter_active(posts))
    page_posts = paginate(live, page, page_size)

    # quoted posts may sit outside the current page
    wanted = {p.id for p in page_posts}
    wanted.update(p.quoted_post_id for p in live if p.quoted_post_id)
    relevant = interactions_for_targets(interactions, wanted)
    stats_map = aggregate_interactions(relevant, viewer)
    quote_counts = count_quotes(posts)
    tips = sum_tips(relevant)

    index = {p.id: p for p in merge_posts_with_stats(
        [p for p in live if p.id in wanted], stats_map, quote_counts, tips
    )}
    page_items = [index[p.id] for p in page_posts]
    enriched = enrich_with_quotes(page_items, index, max_depth)

    logger.debug(f"Assembled feed page {page}: {len(enriched)} of {len(live)} posts")
    return FeedPage(page=page, page_size=page_size, total=len(live), posts=enriched)
