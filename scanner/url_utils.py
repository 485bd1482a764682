import re
from urllib.parse import urlparse, urlunparse, urljoin

from scanner.errors import InvalidURLError

_SCHEME_RE = re.compile(r"^https?://", re.IGNORECASE)
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class LinkUtility:

    # -------------------------------
    # NETWORK NORMALIZATION (FETCH)
    # -------------------------------
    @staticmethod
    def normalize_target(url: str) -> str:
        """
        Normalization for scan targets.
        Bare hosts get https://; anything that does not parse as an
        http(s) URL with a host raises InvalidURLError.
        """
        if not url or not isinstance(url, str) or not url.strip():
            raise InvalidURLError("Please provide a valid URL")

        url = url.strip()
        if not _SCHEME_RE.match(url):
            url = "https://" + url

        if not LinkUtility.is_fetchable(url):
            raise InvalidURLError()

        parsed = urlparse(url)
        return urlunparse((
            parsed.scheme.lower(),
            parsed.netloc.lower(),
            parsed.path,
            parsed.params,
            parsed.query,
            parsed.fragment,
        ))

    @staticmethod
    def is_fetchable(url: str) -> bool:
        """True for absolute http(s) URLs with a usable host."""
        try:
            parsed = urlparse(url)
            # .port raises ValueError on a malformed port
            parsed.port
        except ValueError:
            return False
        if parsed.scheme.lower() not in ("http", "https"):
            return False
        if not parsed.hostname or any(c.isspace() for c in parsed.netloc):
            return False
        return True

    @staticmethod
    def resolve_redirect(current_url: str, location: str) -> str | None:
        """Resolve a Location header against the current URL; None if unusable."""
        if not location or not location.strip():
            return None
        try:
            target = urljoin(current_url, location.strip())
        except ValueError:
            return None
        return target if LinkUtility.is_fetchable(target) else None

    # -------------------------------
    # STORAGE IDENTITY (HOST)
    # -------------------------------
    @staticmethod
    def hostname(url: str) -> str | None:
        """
        Host used to group scans of one site for trend and diff.
        Scheme, port, path and query are ignored.
        """
        if not url:
            return None
        if not _SCHEME_RE.match(url.strip()):
            url = "https://" + url.strip()
        try:
            host = urlparse(url.strip()).hostname
        except ValueError:
            return None
        return host.rstrip(".").lower() if host else None


def normalize_contact(contact: str) -> str | None:
    """Lower-cased e-mail address, or None if it does not look like one."""
    if not contact or not isinstance(contact, str):
        return None
    contact = contact.strip().lower()
    return contact if _EMAIL_RE.match(contact) else None
