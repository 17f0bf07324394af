"""
Core data structures shared by the meme ingestion pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Category(str, Enum):
    SPORTS = "Sports"
    POLITICS = "Politics"
    ENTERTAINMENT = "Entertainment"
    TECH = "Tech"
    OTHER = "Other"

    @property
    def subcategories(self) -> Tuple["Subcategory", ...]:
        # Imported lazily: the taxonomy tables reference Category.
        from memetok.taxonomy import DEFAULT_TAXONOMY

        return DEFAULT_TAXONOMY.subcategories_for(self)


class ListingMode(str, Enum):
    HOT = "hot"
    NEW = "new"
    TOP = "top"
    SEARCH = "search"


TRENDING_MODES: Tuple[ListingMode, ...] = (ListingMode.HOT, ListingMode.NEW, ListingMode.TOP)


@dataclass(frozen=True)
class Subcategory:
    id: str
    name: str
    keywords: FrozenSet[str]


class Post(BaseModel):
    """
    A single candidate image post as returned by a listing endpoint.

    Field names follow the wire format so listings validate without aliases.
    ``id`` is assigned by the source and is not unique across sources.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    title: str
    url: str
    subreddit: str
    score: int
    upvote_ratio: float = Field(ge=0, le=1)
    created_utc: float

    @field_validator("title")
    @classmethod
    def _trim_title(cls, value: str) -> str:
        return value.strip()


class ListingChild(BaseModel):
    data: Post


class ListingData(BaseModel):
    children: List[ListingChild]


class Listing(BaseModel):
    """Envelope shaped as ``{data: {children: [{data: Post}, ...]}}``."""

    data: ListingData

    def posts(self) -> List[Post]:
        return [child.data for child in self.data.children]


@dataclass
class Topic:
    id: str
    title: str
    category: Category
    subcategory_id: Optional[str]
    created_at: datetime
    trending_score: float
    is_active: bool = True

    def as_dict(self) -> Dict[str, object]:
        payload: Dict[str, object] = {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "created_at": self.created_at.timestamp(),
            "trending_score": self.trending_score,
            "is_active": self.is_active,
        }
        if self.subcategory_id is not None:
            payload["subcategory_id"] = self.subcategory_id
        return payload


@dataclass
class SourceResult:
    """Outcome of one fetch unit (a source, or a source/query pair)."""

    source: str
    group: str
    posts: List[Post] = field(default_factory=list)
    error: Optional[str] = None
    latency_ms: Optional[float] = None
    query: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class AggregationReport:
    groups: Dict[str, List[Post]]
    results: List[SourceResult]
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def failures(self) -> List[SourceResult]:
        return [result for result in self.results if not result.ok]

    def total_posts(self) -> int:
        return sum(len(posts) for posts in self.groups.values())


@dataclass
class PipelineResult:
    report: AggregationReport
    classified: List[Tuple[Post, Topic]]
    generated_at: datetime
    duration_ms: float = 0.0
