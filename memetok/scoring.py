"""
Recency, validity and ranking helpers for listing posts.

Two different popularity numbers exist and are kept apart on purpose:
``trending_score`` ranks posts inside one aggregation pass (recency
weighted), ``topic_trending_score`` is stored on a Topic (no recency term).
"""
from __future__ import annotations

from typing import Iterable, List, Sequence

from memetok.models import Post

RECENCY_WINDOW_SECONDS = 5 * 24 * 60 * 60

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif")
IMAGE_HOSTS = ("i.redd.it", "i.imgur.com", "imgur.com")


def is_valid_image_post(post: Post) -> bool:
    url = post.url.lower()
    has_image_extension = url.endswith(IMAGE_EXTENSIONS)
    is_image_host = any(host in post.url for host in IMAGE_HOSTS)
    return has_image_extension or is_image_host


def is_recent(post: Post, now: float, window_seconds: int = RECENCY_WINDOW_SECONDS) -> bool:
    return now - post.created_utc < window_seconds


def age_hours(post: Post, now: float) -> float:
    return max(0.0, now - post.created_utc) / 3600.0


def trending_score(post: Post, now: float) -> float:
    recency_bonus = 1.0 / (age_hours(post, now) + 1.0)
    return float(post.score) * post.upvote_ratio * recency_bonus


def topic_trending_score(post: Post) -> float:
    return float(post.score) * post.upvote_ratio


def rank_by_trending(posts: Iterable[Post], now: float) -> List[Post]:
    # sorted() is stable, so equal scores keep their input order.
    return sorted(posts, key=lambda post: trending_score(post, now), reverse=True)


def rank_by_popularity(posts: Sequence[Post]) -> List[Post]:
    return sorted(posts, key=lambda post: post.score, reverse=True)
