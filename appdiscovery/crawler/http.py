"""
HTTP fetching for source-site pages.

A thin requests.Session wrapper: browser-like headers, a per-call timeout,
retry with backoff on transient failures, and a single FetchError type
for everything that goes wrong.
"""

import time
from typing import Callable, Optional

import requests
from requests import exceptions as req_exc

from appdiscovery.core.config import Config, get_config
from appdiscovery.core.logging import get_logger
from appdiscovery.crawler.rate_limiter import RateLimiter
from appdiscovery.utils.retry import RetryConfig, retry_with_backoff

logger = get_logger(__name__)

TRANSIENT_HTTP_STATUSES = {429, 500, 502, 503, 504}


class FetchError(Exception):
    """A page could not be fetched (network failure, timeout or non-2xx status)."""

    def __init__(self, url: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.status_code = status_code


class PageFetcher:
    """
    Fetches HTML from the source site, spacing requests with a RateLimiter.

    Args:
        rate_limiter: Limiter owned by the current run (None disables spacing)
        session: requests.Session to use (default: a new one)
        config: Timeouts, retries and user agent (default: global config)
        sleep: Sleep function for retry backoff
    """

    def __init__(
        self,
        rate_limiter: Optional[RateLimiter] = None,
        session: Optional[requests.Session] = None,
        config: Optional[Config] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self.config = config or get_config()
        self.rate_limiter = rate_limiter
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "User-Agent": self.config.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            }
        )
        self._retry = RetryConfig(max_retries=self.config.fetch_max_retries, base_delay=1.0, max_delay=8.0)
        self._sleep = sleep or time.sleep

    def fetch(self, url: str, timeout: Optional[float] = None) -> str:
        """
        GET a page and return its body text.

        Args:
            url: Absolute URL
            timeout: Seconds (default: PAGE_TIMEOUT_S)

        Raises:
            FetchError: On network failure, timeout or non-2xx response
        """
        timeout = timeout or self.config.page_timeout_s

        def attempt() -> str:
            if self.rate_limiter is not None:
                self.rate_limiter.wait()
            return self._get(url, timeout)

        return retry_with_backoff(
            attempt,
            config=self._retry,
            retry_on=(_TransientFetchError,),
            sleep=self._sleep,
        )

    def fetch_detail(self, url: str) -> str:
        return self.fetch(url, timeout=self.config.detail_timeout_s)

    def _get(self, url: str, timeout: float) -> str:
        try:
            resp = self.session.get(url, timeout=timeout)
        except req_exc.Timeout as e:
            raise _TransientFetchError(url, f"timed out after {timeout}s") from e
        except req_exc.RequestException as e:
            raise _TransientFetchError(url, f"request failed: {e}") from e

        if resp.status_code in TRANSIENT_HTTP_STATUSES:
            raise _TransientFetchError(url, f"HTTP {resp.status_code}", resp.status_code)
        if not 200 <= resp.status_code < 300:
            raise FetchError(url, f"HTTP {resp.status_code}", resp.status_code)

        logger.debug(f"Fetched {url} ({len(resp.text)} chars)")
        return resp.text


class _TransientFetchError(FetchError):
    """FetchError that is worth retrying."""
