"""HTML fetcher with a local disk cache and retries."""

import logging
import re
import shutil
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from reconcile.config import DEFAULT_CACHE_DIR

log = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 30.0
USER_AGENT = 'rider-reconcile/1.0 (results validation)'

_CACHE_KEY_RE = re.compile(r'[^a-z0-9]', re.IGNORECASE)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of a fetch. ``error`` is set instead of raising."""

    html: str
    from_cache: bool
    error: Optional[str] = None
    not_found: bool = False


def cache_key(url: str) -> str:
    """File name for a cached URL."""
    return _CACHE_KEY_RE.sub('_', url) + '.html'


def _read_cache(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        log.warning("Cache read failed for %s: %s", path, exc)
        return None


def _write_cache(path: Path, html: str) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(html, encoding='utf-8')
    except OSError as exc:
        log.warning("Cache write failed for %s: %s", path, exc)


def fetch_html(
    url: str,
    use_cache: bool = True,
    cache_dir: Path = DEFAULT_CACHE_DIR,
    client: Optional[httpx.Client] = None,
    retry_delay: float = RETRY_DELAY_SECONDS,
) -> FetchResult:
    """Fetch a page, serving it from the disk cache when possible.

    A 404 returns immediately with ``not_found`` set. Other failures are
    retried up to ``MAX_RETRIES`` attempts, waiting ``retry_delay * attempt``
    seconds between them. Cache read/write problems are logged and ignored.

    Args:
        url: Page to fetch.
        use_cache: Read from and write to the cache.
        cache_dir: Directory of cached pages.
        client: httpx client to use. A short-lived one is created if omitted.
        retry_delay: Base delay between attempts in seconds.

    Returns:
        FetchResult with the page text or an error message.
    """
    cache_path = Path(cache_dir) / cache_key(url)

    if use_cache and cache_path.exists():
        cached = _read_cache(cache_path)
        if cached is not None:
            log.debug("Cache hit: %s", url)
            return FetchResult(html=cached, from_cache=True)

    own_client = client is None
    if own_client:
        client = httpx.Client(
            headers={'User-Agent': USER_AGENT},
            timeout=REQUEST_TIMEOUT_SECONDS,
            follow_redirects=True,
        )

    last_error = ''
    try:
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = client.get(url)
                if response.status_code == 404:
                    return FetchResult(
                        html='',
                        from_cache=False,
                        error=f"Page not found (404): {url}",
                        not_found=True,
                    )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                last_error = f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}"
            except httpx.RequestError as exc:
                last_error = str(exc) or exc.__class__.__name__
            else:
                html = response.text
                if use_cache:
                    _write_cache(cache_path, html)
                return FetchResult(html=html, from_cache=False)

            log.warning("Fetch attempt %d/%d failed for %s: %s", attempt, MAX_RETRIES, url, last_error)
            if attempt < MAX_RETRIES:
                time.sleep(retry_delay * attempt)
    finally:
        if own_client:
            client.close()

    return FetchResult(
        html='',
        from_cache=False,
        error=f"Failed after {MAX_RETRIES} attempts: {last_error}",
    )


def clear_cache(url: Optional[str] = None, cache_dir: Path = DEFAULT_CACHE_DIR) -> None:
    """Remove one cached page, or the whole cache when ``url`` is None."""
    cache_dir = Path(cache_dir)
    if url is not None:
        (cache_dir / cache_key(url)).unlink(missing_ok=True)
    elif cache_dir.exists():
        shutil.rmtree(cache_dir)
