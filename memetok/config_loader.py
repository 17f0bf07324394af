"""
Load the curated source catalog (``sources.yaml``) with optional env overrides.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Tuple

import yaml

from memetok.models import Category

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_GROUP = "ICC_Champions_Trophy"
DEFAULT_SEARCH_QUERIES: Tuple[str, ...] = (
    "champions trophy",
    "india bangladesh match",
    "icc tournament",
    "cricket worldcup",
)


@dataclass(frozen=True)
class SourceCatalog:
    """
    Immutable category -> sources mapping plus the specialised search pass.

    ``categories`` keeps the order sources were declared in, which is also the
    order the aggregator applies its shared dedupe in.
    """

    categories: Tuple[Tuple[Category, Tuple[str, ...]], ...]
    search_category: Category = Category.SPORTS
    search_queries: Tuple[str, ...] = DEFAULT_SEARCH_QUERIES
    search_group: str = DEFAULT_SEARCH_GROUP

    def sources_for(self, category: Category) -> Tuple[str, ...]:
        for declared, sources in self.categories:
            if declared == category:
                return sources
        return ()

    def all_sources(self) -> List[str]:
        seen = set()
        ordered: List[str] = []
        for _, sources in self.categories:
            for source in sources:
                if source in seen:
                    continue
                seen.add(source)
                ordered.append(source)
        return ordered


def load_sources_config(path: Path) -> Dict[str, Any]:
    if not path.exists():
        logger.warning("Source catalog not found at %s", path)
        return {}
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        logger.warning("Source catalog at %s is not a mapping; ignoring", path)
        return {}
    return _expand_env(data)


def load_catalog(path: Path) -> SourceCatalog:
    return build_catalog(load_sources_config(path))


def build_catalog(data: Dict[str, Any]) -> SourceCatalog:
    categories: List[Tuple[Category, Tuple[str, ...]]] = []
    for raw_category, raw_sources in (data.get("categories") or {}).items():
        try:
            category = Category(raw_category)
        except ValueError:
            logger.warning("Unknown category '%s' in source catalog; skipping.", raw_category)
            continue
        sources = tuple(
            source.strip() for source in (raw_sources or []) if isinstance(source, str) and source.strip()
        )
        if sources:
            categories.append((category, sources))

    search = data.get("search") or {}
    search_category = Category.SPORTS
    if search.get("category"):
        try:
            search_category = Category(search["category"])
        except ValueError:
            logger.warning("Unknown search category '%s'; defaulting to Sports.", search["category"])
    queries = tuple(q.strip() for q in search.get("queries") or [] if isinstance(q, str) and q.strip())

    return SourceCatalog(
        categories=tuple(categories),
        search_category=search_category,
        search_queries=queries or DEFAULT_SEARCH_QUERIES,
        search_group=search.get("group") or DEFAULT_SEARCH_GROUP,
    )


def _expand_env(data: Dict[str, Any]) -> Dict[str, Any]:
    def replace(value: Any) -> Any:
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_key = value[2:-1]
            return os.getenv(env_key, "")
        if isinstance(value, dict):
            return {k: replace(v) for k, v in value.items()}
        if isinstance(value, list):
            return [replace(item) for item in value]
        return value

    return replace(data)  # type: ignore[return-value]
