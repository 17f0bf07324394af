"""
Status helpers for the meme pipeline.

The output is designed for CLI/JSON consumption and carries no post content
beyond counts.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from memetok.models import Category, SourceResult
from memetok.pipeline import MemePipeline
from memetok.settings import MemetokSettings


def _result_to_dict(result: SourceResult) -> Dict[str, Any]:
    return {
        "source": result.source,
        "group": result.group,
        "query": result.query,
        "ok": result.ok,
        "error": result.error,
        "items": len(result.posts),
        "latency_ms": round(result.latency_ms, 1) if result.latency_ms is not None else None,
    }


def build_status(
    pipeline: MemePipeline, settings: MemetokSettings, *, include_refresh: bool = True
) -> Dict[str, Any]:
    """
    Build the status payload. ``last_refresh`` is only meaningful in the
    process that ran the refresh, so callers without one can leave it out.
    """
    status: Dict[str, Any] = {"generated_at": datetime.now(timezone.utc).isoformat()}
    if include_refresh:
        report = pipeline.last_report
        run = pipeline.last_run
        status["last_refresh"] = {
            "generated_at": report.generated_at.isoformat() if report else None,
            "groups": {group: len(posts) for group, posts in report.groups.items()} if report else {},
            "sources": [_result_to_dict(result) for result in report.results] if report else [],
            "failures": len(report.failures()) if report else 0,
            "classified": len(run.classified) if run else 0,
            "duration_ms": round(run.duration_ms, 1) if run else None,
        }
    status.update({
        "store": {
            "active_topics": {
                category.value: len(pipeline.topics(category=category, is_active=True)) for category in Category
            },
        },
        "config": {
            "base_url": settings.base_url,
            "db_path": str(settings.db_path),
            "sources_path": str(settings.sources_path),
            "per_source_limit": settings.per_source_limit,
            "search_limit": settings.search_limit,
            "max_workers": settings.max_workers,
        },
    })
    return status
