"""Shared requests session factory with retry and backoff."""

import logging
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger(__name__)

DEFAULT_RETRY_COUNT = 3
DEFAULT_BACKOFF_FACTOR = 0.3
DEFAULT_TIMEOUT = 30


def create_session(
    retry_count: int = DEFAULT_RETRY_COUNT,
    backoff_factor: float = DEFAULT_BACKOFF_FACTOR
) -> requests.Session:
    """Create a session that retries idempotent requests on transient statuses."""
    retry_strategy = Retry(
        total=retry_count,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["HEAD", "GET", "OPTIONS"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)

    session = requests.Session()
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    logger.debug(f"Created HTTP session with retry_count={retry_count}")
    return session


def service_url(base_url: str, path: str) -> str:
    """Join a service base URL and a relative path (``urljoin`` semantics)."""
    return urljoin(base_url if base_url.endswith("/") else f"{base_url}/", path)
