import logging
from pathlib import Path
from urllib.parse import unquote, urlparse

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def fetch_image(url: str, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """
    Retrieve the raw bytes of a template or branding image with one HTTP GET.

    Only `http(s)://` URLs are accepted: branding URLs come from subscribers
    and must never reach the local filesystem. No retries; retry policy
    belongs to the caller.
    """
    if not url:
        raise FetchError(str(url), "empty url")

    scheme = urlparse(url).scheme
    if scheme not in ("http", "https"):
        raise FetchError(url, f"unsupported url scheme '{scheme}'")

    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise FetchError(url, str(e)) from e

    if not 200 <= response.status_code < 300:
        raise FetchError(
            url,
            f"{response.status_code} {response.reason or ''}".strip(),
            status_code=response.status_code,
        )

    logger.debug("Fetched %d bytes from %s", len(response.content), url)
    return response.content


def fetch_template_image(url: str, timeout: float = DEFAULT_TIMEOUT) -> bytes:
    """
    Like `fetch_image`, but also reads `file://` URIs and bare paths so
    operators can keep templates in a local folder. Use for template URLs
    only, never for subscriber branding.
    """
    parsed = urlparse(url or "")
    if parsed.scheme == "file":
        return _read_local(url, Path(unquote(parsed.path)))
    if url and (parsed.scheme == "" or len(parsed.scheme) == 1):
        # Bare paths (a single-letter "scheme" is a Windows drive).
        return _read_local(url, Path(url))
    return fetch_image(url, timeout=timeout)


def _read_local(url: str, path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as e:
        raise FetchError(url, str(e)) from e
