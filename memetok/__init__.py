"""
Public API for the meme ingestion pipeline.

The pipeline (and with it the SQLite store) is built on first use and kept for
the lifetime of the process.
"""
from __future__ import annotations

import threading
from typing import Dict, List, Optional

from memetok.models import Category, PipelineResult, Post, Topic
from memetok.pipeline import MemePipeline
from memetok.settings import MemetokSettings, load_settings
from memetok.status import build_status

SETTINGS: MemetokSettings = load_settings()
_pipeline: Optional[MemePipeline] = None
_lock = threading.Lock()


def get_pipeline() -> MemePipeline:
    global _pipeline
    with _lock:
        if _pipeline is None:
            _pipeline = MemePipeline.from_settings(SETTINGS)
        return _pipeline


def refresh() -> PipelineResult:
    """Fetch, classify and persist everything the curated sources offer now."""
    return get_pipeline().refresh()


def fetch_all_trending() -> Dict[str, List[Post]]:
    return get_pipeline().aggregator.fetch_all_trending()


def fetch_trending_for_source(source: str, limit: Optional[int] = None) -> List[Post]:
    resolved_limit = limit if limit is not None else SETTINGS.per_source_limit
    return get_pipeline().trending_for_source(source, resolved_limit)


def classify(post: Post) -> Topic:
    return get_pipeline().classifier.classify(post)


def save_topic(topic: Topic) -> None:
    get_pipeline().store.save_topic(topic)


def save_post(post: Post, topic_id: Optional[str] = None) -> Optional[str]:
    return get_pipeline().store.save_post(post, topic_id)


def get_topics(
    category: Optional[Category] = None,
    subcategory_id: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> List[Topic]:
    return get_pipeline().topics(category=category, subcategory_id=subcategory_id, is_active=is_active)


def get_posts_for_topic(topic_id: str) -> List[Post]:
    return get_pipeline().posts_for_topic(topic_id)


def get_pipeline_status():
    """Expose a structured status payload for dashboards and the CLI."""
    return build_status(get_pipeline(), SETTINGS)
