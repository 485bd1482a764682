"""
FILE DESCRIPTION: Bounded HTML fetching for single-page scans.
KEY FUNCTIONS/CLASSES: PageFetcher

Redirects are followed by hand so the hop count can be capped, and the body is
streamed so an oversized page is abandoned before it is fully buffered.
"""

import codecs
import re
import time

import requests

from scanner.core import (
    USER_AGENT, REQUEST_TIMEOUT, MAX_REDIRECTS, MAX_PAYLOAD_BYTES, CHUNK_SIZE, logger,
)
from scanner.errors import (
    FetchError, FetchTimeout, HostNotFound, ConnectionRefused, TLSError,
    TooManyRedirects, InvalidRedirect, PayloadTooLarge, HttpStatusError, InvalidURLError,
)
from scanner.url_utils import LinkUtility

_CHARSET_RE = re.compile(r"charset\s*=\s*[\"']?([\w\-:.]+)", re.IGNORECASE)

_DNS_MARKERS = (
    "NameResolutionError", "Name or service not known", "nodename nor servname",
    "getaddrinfo", "Failed to resolve", "No address associated", "Temporary failure in name resolution",
)
_REFUSED_MARKERS = ("Connection refused", "ConnectionRefusedError", "Errno 111", "WinError 10061")


# === PAGE FETCHER ===

class PageFetcher:
    """
    FLOW: Normalizes the target -> Issues GET without automatic redirects ->
    Follows up to MAX_REDIRECTS Location headers -> Streams the body under a size
    ceiling and a whole-request deadline -> Returns decoded markup or raises a FetchError.
    """

    def __init__(self, session=None, *, user_agent=USER_AGENT, max_redirects=MAX_REDIRECTS,
                 max_bytes=MAX_PAYLOAD_BYTES):
        self.session = session or requests.Session()
        self.user_agent = user_agent
        self.max_redirects = max_redirects
        self.max_bytes = max_bytes

    def fetch(self, url: str, timeout: float = REQUEST_TIMEOUT) -> str:
        target = LinkUtility.normalize_target(url)
        deadline = time.monotonic() + timeout
        headers = {
            "User-Agent": self.user_agent,
            "Accept": "text/html,application/xhtml+xml",
            "Accept-Language": "en-US,en;q=0.9",
        }

        redirects = 0
        current = target
        while True:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise FetchTimeout(f"Request timed out after {timeout:g}s")

            logger.info(f"[FETCH] GET {current}")
            try:
                response = self.session.get(
                    current, headers=headers, timeout=remaining,
                    allow_redirects=False, stream=True,
                )
            except requests.exceptions.RequestException as e:
                raise self._classify(e, timeout) from e

            try:
                status = response.status_code
                location = response.headers.get("Location")

                if 300 <= status < 400 and location:
                    redirects += 1
                    if redirects > self.max_redirects:
                        raise TooManyRedirects()
                    next_url = LinkUtility.resolve_redirect(current, location)
                    if next_url is None:
                        raise InvalidRedirect(f"Invalid redirect URL: {location[:120]}")
                    logger.info(f"[FETCH] {status} redirect {redirects}/{self.max_redirects} -> {next_url}")
                    current = next_url
                    continue

                if not 200 <= status < 300:
                    raise HttpStatusError(status)

                body = self._read_body(response, deadline, timeout)
                return self._decode(body, response.headers.get("Content-Type", ""))
            finally:
                response.close()

    def _read_body(self, response, deadline, timeout) -> bytes:
        chunks = []
        size = 0
        try:
            for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                if not chunk:
                    continue
                size += len(chunk)
                if size > self.max_bytes:
                    raise PayloadTooLarge()
                if time.monotonic() > deadline:
                    raise FetchTimeout(f"Request timed out after {timeout:g}s")
                chunks.append(chunk)
        except requests.exceptions.RequestException as e:
            raise self._classify(e, timeout) from e
        return b"".join(chunks)

    @staticmethod
    def _decode(body: bytes, content_type: str) -> str:
        encoding = "utf-8"
        match = _CHARSET_RE.search(content_type or "")
        if match:
            try:
                encoding = codecs.lookup(match.group(1)).name
            except LookupError:
                encoding = "utf-8"
        return body.decode(encoding, errors="replace")

    @staticmethod
    def _classify(exc, timeout):
        """Map a requests exception onto the fetch error taxonomy."""
        text = str(exc)
        if isinstance(exc, requests.exceptions.SSLError):
            return TLSError()
        if isinstance(exc, requests.exceptions.Timeout) or "timed out" in text.lower():
            return FetchTimeout(f"Request timed out after {timeout:g}s")
        if isinstance(exc, (requests.exceptions.InvalidURL, requests.exceptions.MissingSchema,
                            requests.exceptions.InvalidSchema)):
            return InvalidURLError()
        if isinstance(exc, requests.exceptions.ConnectionError):
            if any(marker in text for marker in _DNS_MARKERS):
                return HostNotFound()
            if any(marker in text for marker in _REFUSED_MARKERS):
                return ConnectionRefused()
            if "certificate" in text.lower() or "SSL" in text:
                return TLSError()
        return FetchError(text or exc.__class__.__name__)
