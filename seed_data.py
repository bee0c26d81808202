import random
from datetime import datetime, timedelta
from sqlmodel import SQLModel

from core.schemas import get_schema_id
from dependencies import get_engine
from models import InteractionCreate, InteractionType, PlayEventCreate, PostCreate, TargetType
from services.event_log import SqlEventLog
from services.social_graph import user_target_id
from services.validation import (
    build_interaction,
    build_play_event,
    build_post,
    encode_interaction,
    encode_play_event,
    encode_post,
)

# Data pools
POST_CONTENTS = [
    "Just dropped a new track, let me know what you think 🎧",
    "Mixing session all night, almost there",
    "Who's coming to the show on Friday? 🎤",
    "This album has been on repeat all week",
    "Working on a remix, sneak peek soon",
    "Finally finished the master for the EP 🎉",
    "Any recommendations for lo-fi producers?",
    "Studio day ☕️",
]

COMMENTS = [
    "Love this!",
    "On repeat 🔥",
    "Can't wait",
    "So good",
    "Where can I hear the full version?",
]

TOKEN_IDS = list(range(1, 13))


def random_address() -> str:
    return "0x" + "".join(random.choice("0123456789abcdef") for _ in range(40))


def random_timestamp(start_date: datetime, end_date: datetime) -> int:
    seconds = random.randint(0, int((end_date - start_date).total_seconds()))
    return int((start_date + timedelta(seconds=seconds)).timestamp() * 1000)


def create_test_data(users_count: int = 10, posts_count: int = 50, plays_count: int = 300, seed: int | None = None):
    """Publish a random but coherent set of demo records to the local event log."""
    rng_state = random.getstate()
    if seed is not None:
        random.seed(seed)

    engine = get_engine()
    SQLModel.metadata.create_all(engine)
    log = SqlEventLog(engine)

    end_date = datetime.now()
    start_date = end_date - timedelta(days=30)
    users = [random_address() for _ in range(users_count)]

    # Posts, some of them quoting earlier ones
    posts = []
    for _ in range(posts_count):
        author = random.choice(users)
        quoted = random.choice(posts).id if posts and random.random() < 0.2 else 0
        post = build_post(
            PostCreate(content=random.choice(POST_CONTENTS), author=author, quoted_post_id=quoted),
            timestamp=random_timestamp(start_date, end_date),
        )
        posts.append(post)
        log.append(get_schema_id("posts"), author, encode_post(post))

    def publish(data: InteractionCreate, timestamp: int):
        record = build_interaction(data, timestamp)
        log.append(get_schema_id("interactions"), data.from_user, encode_interaction(record))
        return record

    interactions = 0
    active_likes = 0
    for user in users:
        # Each user likes 5 random posts and unlikes one of them again
        others = [p for p in posts if p.author != user]
        liked = random.sample(others, min(5, len(others)))
        for post in liked:
            ts = max(post.timestamp, random_timestamp(start_date, end_date))
            publish(InteractionCreate(type=InteractionType.LIKE, target_id=post.id, from_user=user), ts)
            interactions += 1
        if liked:
            active_likes += len(liked) - 1
            publish(
                InteractionCreate(type=InteractionType.UNLIKE, target_id=liked[0].id, from_user=user),
                int(end_date.timestamp() * 1000) + 1,
            )
            interactions += 1

        # A comment with a reply from another user
        if others:
            post = random.choice(others)
            ts = max(post.timestamp, random_timestamp(start_date, end_date))
            comment = publish(
                InteractionCreate(type=InteractionType.COMMENT, target_id=post.id, from_user=user, content=random.choice(COMMENTS)),
                ts,
            )
            replier = random.choice([u for u in users if u != user])
            publish(
                InteractionCreate(
                    type=InteractionType.COMMENT,
                    target_id=post.id,
                    from_user=replier,
                    content=random.choice(COMMENTS),
                    parent_id=comment.id,
                ),
                ts + 1000,
            )
            interactions += 2

        # Follow two other users
        for followed in random.sample([u for u in users if u != user], min(2, users_count - 1)):
            publish(
                InteractionCreate(
                    type=InteractionType.FOLLOW,
                    target_id=user_target_id(followed),
                    target_type=TargetType.USER,
                    from_user=user,
                    content=followed,
                ),
                random_timestamp(start_date, end_date),
            )
            interactions += 1

    # Plays, weighted towards the first few tokens
    week_start = end_date - timedelta(days=7)
    for _ in range(plays_count):
        listener = random.choice(users)
        token_id = random.choices(TOKEN_IDS, weights=[len(TOKEN_IDS) - i for i in range(len(TOKEN_IDS))])[0]
        event = build_play_event(
            PlayEventCreate(token_id=token_id, listener=listener, duration=random.randint(30, 300)),
            timestamp=random_timestamp(week_start, end_date),
        )
        log.append(get_schema_id("play_events"), listener, encode_play_event(event))

    random.setstate(rng_state)
    return {"users": users, "posts": len(posts), "interactions": interactions, "likes": active_likes, "plays": plays_count}


if __name__ == "__main__":
    create_test_data()
