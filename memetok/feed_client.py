"""
Client for Reddit-style listing endpoints (``/r/{source}/{mode}.json``).
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from memetok.errors import InvalidEndpoint, MalformedPayload
from memetok.http_client import HttpClient
from memetok.models import Listing, ListingMode, Post

logger = logging.getLogger(__name__)

_SOURCE_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")


class FeedClient:
    """
    Fetches one listing for one source and parses it into ``Post`` records.

    No retries happen here; every failure surfaces as a ``FetchError``.
    """

    def __init__(self, base_url: str = "https://www.reddit.com", http: Optional[HttpClient] = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.http = http or HttpClient()

    def fetch_listing(
        self,
        source: str,
        mode: ListingMode,
        limit: int,
        query: Optional[str] = None,
    ) -> List[Post]:
        url, params = self.build_request(source, mode, limit, query)
        payload = self.http.get_json(url, params=params, source=source)
        posts = self.parse_listing(payload, source=source, url=url)
        logger.debug("Fetched %d posts from %s (%s)", len(posts), source, mode.value)
        return posts

    def search(self, source: str, query: str, limit: int) -> List[Post]:
        return self.fetch_listing(source, ListingMode.SEARCH, limit, query=query)

    def build_request(
        self,
        source: str,
        mode: ListingMode,
        limit: int,
        query: Optional[str] = None,
    ) -> Tuple[str, Dict[str, Any]]:
        if not self.base_url.startswith(("http://", "https://")):
            raise InvalidEndpoint(f"base URL must be http(s): {self.base_url!r}", source=source)
        name = (source or "").strip()
        if not name or not _SOURCE_PATTERN.match(name):
            raise InvalidEndpoint(f"invalid source name {source!r}", source=source)
        if limit <= 0:
            raise InvalidEndpoint(f"limit must be positive, got {limit}", source=source)

        params: Dict[str, Any]
        if mode == ListingMode.SEARCH:
            if not query or not query.strip():
                raise InvalidEndpoint("search listing requires a query", source=source)
            params = {"q": query.strip(), "sort": "new", "limit": limit}
        elif mode == ListingMode.TOP:
            params = {"t": "day", "limit": limit}
        else:
            params = {"limit": limit}
        return f"{self.base_url}/r/{name}/{mode.value}.json", params

    @staticmethod
    def parse_listing(payload: Any, *, source: Optional[str] = None, url: Optional[str] = None) -> List[Post]:
        try:
            return Listing.model_validate(payload).posts()
        except ValidationError as exc:
            raise MalformedPayload(exc, source=source, url=url) from exc
