"""Network access (registry metadata, tarballs, signature artifacts)."""

from .http import DEFAULT_RETRIES, HttpClient, HttpError, MockHttpClient, RealHttpClient

__all__ = [
    "DEFAULT_RETRIES",
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]
