from typing import Dict, Iterable, List

from models import CommentThread, Interaction, InteractionType


def _by_time(comment: Interaction):
    return (comment.timestamp, comment.id)


def comments_for_target(target_id: int, interactions: Iterable[Interaction]) -> List[Interaction]:
    return sorted(
        (i for i in interactions if i.target_id == target_id and i.type == InteractionType.COMMENT),
        key=_by_time,
    )


def build_comment_tree(target_id: int, interactions: Iterable[Interaction]) -> List[CommentThread]:
    """Top-level comments of a target, each with its direct replies.

    Replies whose parent is not a top-level comment of this target do not
    appear in the tree, although they still count towards the target's
    comment total.
    """
    top_level: List[Interaction] = []
    replies: Dict[int, List[Interaction]] = {}
    for comment in comments_for_target(target_id, interactions):
        if comment.is_top_level:
            top_level.append(comment)
        else:
            replies.setdefault(comment.parent_id, []).append(comment)

    return [
        CommentThread(**comment.model_dump(), replies=replies.get(comment.id, []))
        for comment in top_level
    ]


def replies_for_comment(comment_id: int, interactions: Iterable[Interaction]) -> List[Interaction]:
    return sorted(
        (i for i in interactions if i.type == InteractionType.COMMENT and i.parent_id == comment_id),
        key=_by_time,
    )
