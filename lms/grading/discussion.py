"""Discussion auto-grading rule."""

from decimal import Decimal


def effective_minimum_replies(minimum_reply_count: int | None, default: int = 1) -> int:
    """Required replies for full credit; values below 1 count as 1."""
    if minimum_reply_count is None:
        minimum_reply_count = default
    return max(minimum_reply_count, 1)


def discussion_award(
    has_post: bool,
    reply_count: int,
    minimum_replies: int,
    max_points: Decimal,
) -> Decimal:
    """Points earned for discussion participation.

    Full marks with a post and at least ``minimum_replies`` replies,
    otherwise credit proportional to replies, capped at ``max_points``.
    """
    minimum_replies = max(minimum_replies, 1)
    if has_post and reply_count >= minimum_replies:
        return max_points
    return min(Decimal(reply_count) / Decimal(minimum_replies) * max_points, max_points)
