"""
HTTP fetching of page bodies.
"""
from __future__ import annotations

import threading
from typing import Callable, Optional

import requests

# Signature of anything that can turn an absolute URL into page markup.
Fetcher = Callable[[str], str]


class FetchError(Exception):
    """A page body could not be retrieved."""

    def __init__(
        self,
        url: str,
        reason: str,
        status_code: Optional[int] = None,
        kind: Optional[str] = None,
    ) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status_code = status_code
        # Category used in summaries: HTTP status, connection_error or not_html
        if kind is None:
            kind = "connection_error" if status_code is None else str(status_code)
        self.kind = kind


class PageFetcher:
    """
    Fetch HTML pages with a ``requests.Session`` per thread.

    Instances are callable and satisfy :data:`Fetcher`. One attempt per URL;
    HTTP errors and non-HTML responses raise :class:`FetchError`.
    """

    def __init__(self, timeout_s: float = 15.0, user_agent: str = "pagetree/1.0") -> None:
        self.timeout_s = timeout_s
        self.user_agent = user_agent
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers["User-Agent"] = self.user_agent
            self._local.session = session
        return session

    def __call__(self, url: str) -> str:
        try:
            resp = self.session.get(url, timeout=self.timeout_s, allow_redirects=True)
        except requests.RequestException as e:
            raise FetchError(url, str(e)) from e

        if resp.status_code >= 400:
            raise FetchError(url, f"HTTP {resp.status_code}", status_code=resp.status_code)

        # Missing content-type is given the benefit of the doubt
        content_type = (resp.headers.get("content-type") or "").lower()
        if content_type and "html" not in content_type:
            raise FetchError(
                url,
                f"not an HTML page ({content_type})",
                status_code=resp.status_code,
                kind="not_html",
            )

        return resp.text
