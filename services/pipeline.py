"""Orchestration of fetch, decode and aggregation over the event log.

``AggregationService`` keeps the most recent complete view of the log as an
immutable ``RecordSnapshot``. Every read works on one snapshot, so a caller
never sees records from two different fetch rounds mixed together.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from core.exceptions import ValidationFailure
from core.metrics import aggregation_latency
from core.schemas import get_schema_id
from models import (
    CommentThread,
    FeedPage,
    FeedPost,
    Interaction,
    InteractionCreate,
    PlayEvent,
    PlayEventCreate,
    PlayRecordResult,
    Post,
    PostCreate,
    PostDelete,
    PostStats,
    RecordWriteResponse,
    TrendingEntry,
)
from services import social_graph, trending
from services.aggregation import aggregate_interactions, interactions_for_targets, sum_tips
from services.comments import build_comment_tree
from services.event_log import EventLogReader, fetch_from_writers
from services.feed import QUOTE_MAX_DEPTH, assemble_feed, count_quotes, enrich_with_quotes, merge_posts_with_stats
from services.normalizer import collapse_post_versions, decode_batch
from services.publishers import PublisherRegistry
from services.validation import (
    build_deleted_version,
    build_interaction,
    build_play_event,
    build_post,
    encode_interaction,
    encode_play_event,
    encode_post,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordSnapshot:
    generation: int
    interactions: Tuple[Interaction, ...] = ()
    posts: Tuple[Post, ...] = ()
    play_events: Tuple[PlayEvent, ...] = ()
    rejected: int = 0
    writers: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def live_posts(self) -> List[Post]:
        return [p for p in self.posts if not p.is_deleted]

    def post(self, post_id: int) -> Optional[Post]:
        return next((p for p in self.posts if p.id == post_id), None)


class AggregationService:
    def __init__(
        self,
        log: EventLogReader,
        registry: Optional[PublisherRegistry] = None,
        fetch_timeout: float = 10.0,
        quote_max_depth: int = QUOTE_MAX_DEPTH,
        trending_window_days: int = 7,
    ):
        self.log = log
        self.registry = registry or PublisherRegistry()
        self.fetch_timeout = fetch_timeout
        self.quote_max_depth = quote_max_depth
        self.trending_window_days = trending_window_days
        self._snapshot = RecordSnapshot(generation=0)
        self._started = 0
        self._dirty = True
        self._round: Optional[asyncio.Future] = None
        self._last_timestamp = 0

    @property
    def current(self) -> RecordSnapshot:
        return self._snapshot

    def invalidate(self) -> None:
        """Force the next read to start a new fetch round."""
        self._dirty = True

    async def refresh(self) -> RecordSnapshot:
        """Run one fetch round and commit it unless a newer round already has."""
        self._started += 1
        generation = self._started
        self._dirty = False
        round_done = asyncio.get_running_loop().create_future()
        self._round = round_done
        try:
            return await self._run_round(generation)
        finally:
            round_done.set_result(generation)

    async def _run_round(self, generation: int) -> RecordSnapshot:
        writers = self.registry.all()

        with aggregation_latency.time():
            interaction_rows, post_rows, play_rows = await asyncio.gather(
                fetch_from_writers(self.log, get_schema_id("interactions"), writers, self.fetch_timeout, "interactions"),
                fetch_from_writers(self.log, get_schema_id("posts"), writers, self.fetch_timeout, "posts"),
                fetch_from_writers(self.log, get_schema_id("play_events"), writers, self.fetch_timeout, "play_events"),
            )
            interactions = decode_batch("interactions", interaction_rows)
            posts = decode_batch("posts", post_rows)
            plays = decode_batch("play_events", play_rows)

        discovered = self.registry.discover(interactions.records)
        if discovered:
            # new writers are read from the next round on
            self._dirty = True

        if generation < self._snapshot.generation:
            logger.info(f"Discarding stale fetch round {generation}, snapshot is at {self._snapshot.generation}")
            return self._snapshot

        self._snapshot = RecordSnapshot(
            generation=generation,
            interactions=tuple(interactions.records),
            posts=tuple(collapse_post_versions(posts.records)),
            play_events=tuple(plays.records),
            rejected=len(interactions.rejections) + len(posts.rejections) + len(plays.rejections),
            writers=tuple(writers),
        )
        logger.info(
            f"Committed snapshot {generation}: {len(interactions.records)} interactions, "
            f"{len(self._snapshot.posts)} posts, {len(plays.records)} play events "
            f"from {len(writers)} writers ({self._snapshot.rejected} rejected)"
        )
        return self._snapshot

    async def snapshot(self) -> RecordSnapshot:
        """The view to read from, including every write made before the call."""
        if self._dirty:
            return await self.refresh()
        if self._round is not None and not self._round.done():
            # the round in flight started after the last write
            await self._round
        return self._snapshot

    # Posts

    async def get_feed(self, page: int, page_size: int, viewer: Optional[str] = None) -> FeedPage:
        snap = await self.snapshot()
        return assemble_feed(snap.posts, snap.interactions, page, page_size, viewer, self.quote_max_depth)

    def _quote_chain(self, snap: RecordSnapshot, post_id: int) -> List[Post]:
        live = {p.id: p for p in snap.live_posts}
        chain: List[Post] = []
        current = live.get(post_id)
        while current is not None and len(chain) <= self.quote_max_depth and current not in chain:
            chain.append(current)
            current = live.get(current.quoted_post_id) if current.quoted_post_id else None
        return chain

    async def get_post(self, post_id: int, viewer: Optional[str] = None) -> Optional[FeedPost]:
        snap = await self.snapshot()
        chain = self._quote_chain(snap, post_id)
        if not chain:
            return None
        ids = {p.id for p in chain}
        relevant = interactions_for_targets(snap.interactions, ids)
        index = {p.id: p for p in merge_posts_with_stats(
            chain,
            aggregate_interactions(relevant, viewer),
            count_quotes(snap.posts),
            sum_tips(relevant),
        )}
        return enrich_with_quotes([index[post_id]], index, self.quote_max_depth)[0]

    async def get_post_stats(self, post_id: int, viewer: Optional[str] = None) -> PostStats:
        snap = await self.snapshot()
        stats = aggregate_interactions(interactions_for_targets(snap.interactions, [post_id]), viewer)
        return stats.get(post_id, PostStats())

    async def get_comments(self, post_id: int) -> List[CommentThread]:
        snap = await self.snapshot()
        return build_comment_tree(post_id, snap.interactions)

    # Plays

    async def get_trending(self, limit: int = 10, window_days: Optional[int] = None, now: Optional[int] = None) -> List[TrendingEntry]:
        snap = await self.snapshot()
        window_ms = (window_days or self.trending_window_days) * trending.DAY_MS
        candidates = sorted({e.token_id for e in snap.play_events})
        return trending.get_trending(snap.play_events, candidates, limit, window_ms, now)

    async def play_counts(self, token_ids: Sequence[int]) -> Dict[int, int]:
        snap = await self.snapshot()
        counts = trending.aggregate_play_counts(snap.play_events)
        return {token_id: counts.get(token_id, 0) for token_id in token_ids}

    async def best_in_album(self, token_ids: Sequence[int]) -> Optional[Dict[str, int]]:
        snap = await self.snapshot()
        return trending.best_in_album(snap.play_events, token_ids)

    async def record_play(self, data: PlayEventCreate, now: Optional[int] = None) -> PlayRecordResult:
        """Append a play event unless the listener already played this item today."""
        snap = await self.snapshot()
        if trending.has_played_today(snap.play_events, data.token_id, data.listener, now):
            return PlayRecordResult(recorded=False, message="Already played today")
        event = build_play_event(data, self._stamp(now))
        self._append("play_events", data.publisher or data.listener, encode_play_event(event))
        return PlayRecordResult(recorded=True, event_id=event.id, message="Play recorded")

    # Social graph

    async def followers(self, address: str) -> List[str]:
        snap = await self.snapshot()
        return social_graph.followers(address, snap.interactions)

    async def following(self, address: str) -> List[str]:
        snap = await self.snapshot()
        return social_graph.following(address, snap.interactions)

    async def is_following(self, follower: str, address: str) -> bool:
        snap = await self.snapshot()
        return social_graph.is_following(follower, address, snap.interactions)

    async def bookmarks(self, address: str) -> List[FeedPost]:
        """Live posts bookmarked by the user, most recently bookmarked first."""
        snap = await self.snapshot()
        live = {p.id: p for p in snap.live_posts}
        ids = [i for i in social_graph.bookmarked_post_ids(address, snap.interactions) if i in live]
        relevant = interactions_for_targets(snap.interactions, ids)
        return merge_posts_with_stats(
            [live[i] for i in ids],
            aggregate_interactions(relevant, address),
            count_quotes(snap.posts),
            sum_tips(relevant),
        )

    # Writes

    def _stamp(self, timestamp: Optional[int] = None) -> int:
        """Timestamp for a new record; records written through one service get strictly increasing ones."""
        if timestamp is None:
            timestamp = max(trending.now_ms(), self._last_timestamp + 1)
        self._last_timestamp = max(self._last_timestamp, timestamp)
        return timestamp

    def _append(self, schema: str, writer: str, row: list) -> RecordWriteResponse:
        schema_id = get_schema_id(schema)
        self.registry.add(writer)
        self.log.append(schema_id, writer, row)
        self.invalidate()
        logger.info(f"Appended {schema} record {row[0]} for writer {writer.lower()}")
        return RecordWriteResponse(
            message="Record written",
            record_id=row[0],
            schema_id=schema_id,
            writer=writer.lower(),
        )

    def write_interaction(self, data: InteractionCreate, timestamp: Optional[int] = None) -> RecordWriteResponse:
        record = build_interaction(data, self._stamp(timestamp))
        return self._append("interactions", data.publisher or data.from_user, encode_interaction(record))

    def write_post(self, data: PostCreate, timestamp: Optional[int] = None) -> RecordWriteResponse:
        record = build_post(data, self._stamp(timestamp))
        return self._append("posts", data.publisher or data.author, encode_post(record))

    async def delete_post(self, post_id: int, data: PostDelete, timestamp: Optional[int] = None) -> Optional[RecordWriteResponse]:
        """Publish a deleted version of a post; None when the post does not exist."""
        snap = await self.snapshot()
        post = snap.post(post_id)
        if post is None:
            return None
        if post.author.lower() != data.author.lower():
            raise ValidationFailure("Only the author can delete a post", details={"field": "author"})
        record = build_deleted_version(post, self._stamp(timestamp))
        return self._append("posts", data.publisher or data.author, encode_post(record))
