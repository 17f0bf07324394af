"""
Exception types raised by the feed client and the store.
"""
from __future__ import annotations

from typing import Optional


class FetchError(Exception):
    """Base class for every failure of a single listing request."""

    def __init__(self, message: str, *, source: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source
        self.url = url


class InvalidEndpoint(FetchError):
    pass


class TransportFailure(FetchError):
    def __init__(self, cause: BaseException, *, source: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(f"transport failure: {cause}", source=source, url=url)
        self.cause = cause


class BadStatus(FetchError):
    def __init__(self, code: int, *, source: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(f"unexpected HTTP status {code}", source=source, url=url)
        self.code = code


class MalformedPayload(FetchError):
    def __init__(self, cause: BaseException, *, source: Optional[str] = None, url: Optional[str] = None) -> None:
        super().__init__(f"malformed listing payload: {cause}", source=source, url=url)
        self.cause = cause


class StorageError(Exception):
    """Raised by the store when strict mode is enabled."""
