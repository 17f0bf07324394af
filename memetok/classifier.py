"""
Keyword and entity based topic classification for listing posts.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import FrozenSet, Optional, Protocol, Set, Tuple

from memetok.entities import EntityTagger, NullEntityTagger
from memetok.models import Category, Post, Topic
from memetok.scoring import topic_trending_score
from memetok.taxonomy import DEFAULT_TAXONOMY, Taxonomy

logger = logging.getLogger(__name__)

Classification = Tuple[Category, Optional[str]]


class TopicSink(Protocol):
    def save_topic(self, topic: Topic) -> None:
        ...


def _contains_any(text: str, keywords: FrozenSet[str]) -> bool:
    return any(keyword in text for keyword in sorted(keywords))


class TopicClassifier:
    """
    Assigns a (category, subcategory) pair to a post. Rules run in a fixed
    order and the first match wins:

    1. education keywords in the title -> the taxonomy's education target
    2. subcategory keywords, categories in enum order
    3. coarse category keywords
    4. named entities against the coarse category keywords
    5. Other
    """

    def __init__(
        self,
        taxonomy: Taxonomy = DEFAULT_TAXONOMY,
        tagger: Optional[EntityTagger] = None,
        store: Optional[TopicSink] = None,
    ) -> None:
        self.taxonomy = taxonomy
        self.tagger = tagger or NullEntityTagger()
        self.store = store

    def classify(self, post: Post) -> Topic:
        """Build a topic for ``post`` and save it before returning."""
        topic = self.build_topic(post)
        if self.store is not None:
            self.store.save_topic(topic)
        return topic

    def build_topic(self, post: Post) -> Topic:
        category, subcategory_id = self.categorize(post.title)
        logger.debug("Classified %r as %s/%s", post.title, category.value, subcategory_id)
        return Topic(
            id=str(uuid.uuid4()),
            title=post.title,
            category=category,
            subcategory_id=subcategory_id,
            created_at=datetime.fromtimestamp(post.created_utc, tz=timezone.utc),
            trending_score=topic_trending_score(post),
            is_active=True,
        )

    def categorize(self, title: str) -> Classification:
        lowered = title.lower()

        if _contains_any(lowered, self.taxonomy.education_keywords):
            return self.taxonomy.education_target

        match = self._match_subcategory(lowered)
        if match is not None:
            return match

        for category, keywords in self.taxonomy.category_keywords:
            if _contains_any(lowered, keywords):
                return category, None

        entities = self._entities(lowered)
        if entities:
            for category, keywords in self.taxonomy.category_keywords:
                if entities & keywords:
                    return category, None

        return Category.OTHER, None

    def _match_subcategory(self, lowered: str) -> Optional[Classification]:
        words = set(lowered.split())
        for category, subcategory in self.taxonomy.ordered_subcategories():
            if _contains_any(lowered, subcategory.keywords):
                return category, subcategory.id
            if words & subcategory.keywords or any(
                keyword in word for word in words for keyword in subcategory.keywords
            ):
                return category, subcategory.id
        return None

    def _entities(self, lowered: str) -> Set[str]:
        return {entity.lower() for entity in self.tagger.entities(lowered)}
