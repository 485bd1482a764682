"""
Error taxonomy for the scanner.

Input errors are raised before any network I/O. Network errors are raised by
the fetcher and carry a user-actionable message. The service wraps anything
else in InternalError.
"""


class ScanError(Exception):
    """Base class. `status` is the HTTP status the web layer should answer with."""
    status = 500
    default_message = "Scan failed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


# === INPUT ERRORS ===

class InvalidURLError(ScanError):
    status = 400
    default_message = "Invalid URL format. Please enter a valid website address."


class InvalidContactError(ScanError):
    status = 400
    default_message = "Invalid email address"


class InvalidRequestError(ScanError):
    status = 400
    default_message = "Invalid request"


class NotFoundError(ScanError):
    status = 404
    default_message = "Not found"


# === NETWORK ERRORS ===

class FetchError(ScanError):
    status = 500
    default_message = "Could not fetch the page"


class FetchTimeout(FetchError):
    status = 504
    default_message = "The website took too long to respond. Please try again or check the URL."


class HostNotFound(FetchError):
    status = 400
    default_message = "Could not find that website. Please check the URL and try again."


class ConnectionRefused(FetchError):
    status = 502
    default_message = "Connection refused by the website. It may be down or blocking scanners."


class TLSError(FetchError):
    status = 502
    default_message = "SSL/TLS certificate error. The website may have security issues."


class TooManyRedirects(FetchError):
    default_message = "Too many redirects"


class InvalidRedirect(FetchError):
    default_message = "Invalid redirect URL"


class PayloadTooLarge(FetchError):
    default_message = "Response too large (>5MB)"


class HttpStatusError(FetchError):
    def __init__(self, code, message=None):
        self.code = code
        super().__init__(message or f"HTTP {code}")


# === INTERNAL ===

class InternalError(ScanError):
    status = 500
    default_message = "Scan failed"


# Fetch failures surfaced to callers as-is; everything else is wrapped.
SURFACED_FETCH_ERRORS = (FetchTimeout, HostNotFound, ConnectionRefused, TLSError)
