"""
High-level orchestration: aggregate, classify, persist.
"""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from memetok.aggregator import Aggregator
from memetok.classifier import TopicClassifier
from memetok.config_loader import SourceCatalog, load_catalog
from memetok.entities import EntityTagger, NullEntityTagger, SpacyEntityTagger
from memetok.feed_client import FeedClient
from memetok.http_client import HttpClient
from memetok.models import AggregationReport, Category, PipelineResult, Post, Topic
from memetok.settings import MemetokSettings
from memetok.store import Store

logger = logging.getLogger(__name__)


class MemePipeline:
    def __init__(self, aggregator: Aggregator, classifier: TopicClassifier, store: Store) -> None:
        self.aggregator = aggregator
        self.classifier = classifier
        self.store = store
        self._last_report: Optional[AggregationReport] = None
        self._last_run: Optional[PipelineResult] = None

    @classmethod
    def from_settings(
        cls,
        settings: MemetokSettings,
        *,
        store: Optional[Store] = None,
        catalog: Optional[SourceCatalog] = None,
        tagger: Optional[EntityTagger] = None,
        use_ner: bool = True,
    ) -> "MemePipeline":
        http = HttpClient(timeout=settings.http_timeout, user_agent=settings.user_agent)
        client = FeedClient(base_url=settings.base_url, http=http)
        aggregator = Aggregator(
            client,
            catalog or load_catalog(settings.sources_path),
            per_source_limit=settings.per_source_limit,
            search_limit=settings.search_limit,
            max_workers=settings.max_workers,
        )
        store = store or Store(settings.db_path, strict=settings.strict_storage)
        if tagger is None:
            tagger = SpacyEntityTagger(settings.spacy_model) if use_ner else NullEntityTagger()
        classifier = TopicClassifier(tagger=tagger, store=store)
        return cls(aggregator, classifier, store)

    def refresh(self) -> PipelineResult:
        """
        Aggregate every curated source, classify each surviving post and
        persist the topic together with the post that produced it.
        """
        start = time.time()
        report = self.aggregator.aggregate()
        classified: List[Tuple[Post, Topic]] = []
        for group, posts in report.groups.items():
            for post in posts:
                topic = self.classifier.build_topic(post)
                self.store.save_classified(topic, [post])
                classified.append((post, topic))
            logger.debug("Stored %d posts from group %s", len(posts), group)

        result = PipelineResult(
            report=report,
            classified=classified,
            generated_at=datetime.now(timezone.utc),
            duration_ms=(time.time() - start) * 1000,
        )
        self._last_report = report
        self._last_run = result
        logger.info("Refresh stored %d classified posts in %.0f ms", len(classified), result.duration_ms)
        return result

    def trending_for_source(self, source: str, limit: int) -> List[Post]:
        return self.aggregator.fetch_trending_for_source(source, limit)

    def topics(
        self,
        category: Optional[Category] = None,
        subcategory_id: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> List[Topic]:
        return self.store.get_topics(category=category, subcategory_id=subcategory_id, is_active=is_active)

    def posts_for_topic(self, topic_id: str) -> List[Post]:
        return self.store.get_posts_for_topic(topic_id)

    @property
    def last_report(self) -> Optional[AggregationReport]:
        return self._last_report

    @property
    def last_run(self) -> Optional[PipelineResult]:
        return self._last_run
