"""
HTTP helper with a bounded timeout + polite headers used by the feed client.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests
from urllib3.util.retry import Retry

from memetok.errors import BadStatus, InvalidEndpoint, MalformedPayload, TransportFailure

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Thin wrapper over ``requests.Session`` that turns every failure into a
    ``FetchError`` subclass instead of returning ``None``.
    """

    def __init__(self, timeout: int = 15, user_agent: str | None = None):
        self.timeout = timeout
        self.session = requests.Session()
        # Single attempt; non-2xx responses are returned for the caller to map.
        retry = Retry(total=0, raise_on_status=False)
        adapter = requests.adapters.HTTPAdapter(max_retries=retry)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)
        headers = {
            "User-Agent": user_agent or "memetok-pipeline/1.0",
            "Accept": "application/json",
        }
        self.session.headers.update(headers)

    def get_json(self, url: str, params: Optional[Dict[str, Any]] = None, *, source: Optional[str] = None) -> Any:
        try:
            resp = self.session.get(url, params=params, timeout=self.timeout)
        except (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema, requests.exceptions.InvalidSchema) as exc:
            raise InvalidEndpoint(f"invalid endpoint {url}: {exc}", source=source, url=url) from exc
        except requests.RequestException as exc:
            logger.debug("HTTP GET %s raised %s", url, exc)
            raise TransportFailure(exc, source=source, url=url) from exc

        if not 200 <= resp.status_code <= 299:
            logger.debug("HTTP GET %s returned %s", url, resp.status_code)
            raise BadStatus(resp.status_code, source=source, url=url)
        try:
            return resp.json()
        except ValueError as exc:
            raise MalformedPayload(exc, source=source, url=url) from exc

    def close(self) -> None:
        self.session.close()
