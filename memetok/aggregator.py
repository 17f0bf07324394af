"""
Concurrent multi-source aggregation: fan out listing fetches, fan in, then
merge, dedupe and rank on the calling thread.
"""
from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Set, Tuple

from memetok.config_loader import SourceCatalog
from memetok.dedupe import dedupe_by_key, dedupe_posts
from memetok.errors import FetchError
from memetok.feed_client import FeedClient
from memetok.models import TRENDING_MODES, AggregationReport, Post, SourceResult
from memetok.scoring import is_recent, is_valid_image_post, rank_by_popularity, rank_by_trending

logger = logging.getLogger(__name__)

# (posts, error, latency_ms) for one fetch unit
_Outcome = Tuple[List[Post], Optional[str], float]


class Aggregator:
    def __init__(
        self,
        client: FeedClient,
        catalog: SourceCatalog,
        *,
        per_source_limit: int = 25,
        search_limit: int = 25,
        max_workers: int = 8,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.catalog = catalog
        self.per_source_limit = per_source_limit
        self.search_limit = search_limit
        self.max_workers = max(1, max_workers)
        self.clock = clock

    def fetch_trending_for_source(self, source: str, limit: int) -> List[Post]:
        """
        Fetch hot, new and top-of-day listings for ``source`` concurrently and
        return at most ``limit`` deduplicated image posts ranked by trending
        score. Any listing failure propagates as a ``FetchError``.
        """
        with ThreadPoolExecutor(max_workers=len(TRENDING_MODES)) as executor:
            futures = self._submit_modes(executor, source, limit)
            listings = [future.result() for future in futures]
        return self._merge_source(listings, limit, self.clock())

    def fetch_all_trending(self) -> Dict[str, List[Post]]:
        return self.aggregate().groups

    def aggregate(self) -> AggregationReport:
        """
        Run the search pass and every curated source, absorbing per-source
        failures into the returned report.
        """
        search_sources = self.catalog.sources_for(self.catalog.search_category)
        sources = self.catalog.all_sources()
        logger.info(
            "Aggregating %d sources and %d search queries with %d workers",
            len(sources),
            len(search_sources) * len(self.catalog.search_queries),
            self.max_workers,
        )

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            search_futures = [
                (source, query, executor.submit(self._timed, self.client.search, source, query, self.search_limit))
                for source in search_sources
                for query in self.catalog.search_queries
            ]
            source_futures = [
                (
                    source,
                    [
                        executor.submit(self._timed, self.client.fetch_listing, source, mode, self.per_source_limit)
                        for mode in TRENDING_MODES
                    ],
                )
                for source in sources
            ]
            search_outcomes = [(source, query, future.result()) for source, query, future in search_futures]
            source_outcomes = [(source, [future.result() for future in futures]) for source, futures in source_futures]

        # Everything below runs on this thread only; ``seen`` is never shared.
        now = self.clock()
        seen: Set[object] = set()
        groups: Dict[str, List[Post]] = {}
        results: List[SourceResult] = []

        search_group = self.catalog.search_group
        candidates: List[Post] = []
        for source, query, (posts, error, latency) in search_outcomes:
            results.append(
                SourceResult(source=source, group=search_group, posts=posts, error=error, latency_ms=latency, query=query)
            )
            candidates.extend(posts)
        filtered = [post for post in candidates if is_valid_image_post(post) and is_recent(post, now)]
        unique = dedupe_by_key(rank_by_popularity(filtered), key_fn=lambda post: post.url, seen=seen)
        if unique:
            groups[search_group] = unique

        for source, outcomes in source_outcomes:
            error = next((err for _, err, _ in outcomes if err is not None), None)
            latency = max(lat for _, _, lat in outcomes)
            if error is not None:
                results.append(SourceResult(source=source, group=source, error=error, latency_ms=latency))
                continue
            ranked = self._merge_source([posts for posts, _, _ in outcomes], self.per_source_limit, now)
            unique = dedupe_by_key(ranked, key_fn=lambda post: post.url, seen=seen)
            if unique:
                groups[source] = unique
            results.append(SourceResult(source=source, group=source, posts=unique, latency_ms=latency))

        report = AggregationReport(groups=groups, results=results, generated_at=datetime.now(timezone.utc))
        failed = report.failures()
        if failed:
            logger.warning("%d of %d fetch units failed", len(failed), len(results))
        logger.info("Aggregated %d posts across %d groups", report.total_posts(), len(groups))
        return report

    def _submit_modes(self, executor: ThreadPoolExecutor, source: str, limit: int) -> List[Future]:
        return [executor.submit(self.client.fetch_listing, source, mode, limit) for mode in TRENDING_MODES]

    def _merge_source(self, listings: List[List[Post]], limit: int, now: float) -> List[Post]:
        combined = [post for listing in listings for post in listing]
        recent = [post for post in combined if is_recent(post, now)]
        return rank_by_trending(dedupe_posts(recent), now)[:limit]

    @staticmethod
    def _timed(fn: Callable[..., List[Post]], source: str, *args) -> _Outcome:
        start = time.monotonic()
        try:
            posts = fn(source, *args)
            return posts, None, (time.monotonic() - start) * 1000
        except FetchError as exc:
            logger.warning("Fetch failed for %s: %s", source, exc)
            return [], str(exc), (time.monotonic() - start) * 1000
        except Exception as exc:  # pragma: no cover - safety net
            logger.error("Unexpected error fetching %s: %s", source, exc, exc_info=True)
            return [], f"{type(exc).__name__}: {exc}", (time.monotonic() - start) * 1000
