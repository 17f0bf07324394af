"""
Deduplication helpers for listing posts.
"""
from __future__ import annotations

from typing import Callable, FrozenSet, Iterable, List, Set, TypeVar

from memetok.models import Post
from memetok.scoring import is_valid_image_post

T = TypeVar("T")

TITLE_SIMILARITY_THRESHOLD = 0.7


def normalize(text: str) -> str:
    return text.strip().lower()


def title_words(title: str) -> FrozenSet[str]:
    return frozenset(normalize(title).split())


def title_similarity(a: FrozenSet[str], b: FrozenSet[str]) -> float:
    """|a & b| / max(|a|, |b|); 0.0 when either side is empty."""
    if not a or not b:
        return 0.0
    return len(a & b) / max(len(a), len(b))


def dedupe_posts(
    posts: Iterable[Post],
    threshold: float = TITLE_SIMILARITY_THRESHOLD,
    validator: Callable[[Post], bool] = is_valid_image_post,
) -> List[Post]:
    """
    Drop exact URL repeats and near-duplicate titles within one pass.

    A post's URL and title are recorded before the validity check, so an
    invalid post still shadows later duplicates of itself.
    """
    seen_urls: Set[str] = set()
    seen_titles: List[FrozenSet[str]] = []
    result: List[Post] = []
    for post in posts:
        url = normalize(post.url)
        if url in seen_urls:
            continue
        seen_urls.add(url)

        words = title_words(post.title)
        if any(title_similarity(words, existing) > threshold for existing in seen_titles):
            continue
        seen_titles.append(words)

        if validator(post):
            result.append(post)
    return result


def dedupe_by_key(items: Iterable[T], key_fn: Callable[[T], object], seen: Set[object] | None = None) -> List[T]:
    """Keep the first item per key; ``seen`` may be shared across calls."""
    seen = set() if seen is None else seen
    result: List[T] = []
    for item in items:
        key = key_fn(item)
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result
