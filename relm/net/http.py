"""HTTP client abstraction for registry and artifact downloads.

This module provides:
- HttpClient: Protocol for HTTP GET operations (injectable for tests)
- RealHttpClient: Real implementation using urllib, with a small retry budget
- MockHttpClient: Mock implementation for testing
"""

from __future__ import annotations

import json
import ssl
import threading
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from time import sleep
from typing import Any, Protocol, cast, runtime_checkable

from relm import __version__
from relm.core.result import Err, Ok, Result
from relm.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "RealHttpClient",
    "MockHttpClient",
    "HttpError",
    "DEFAULT_RETRIES",
]

DEFAULT_RETRIES = 2
_RETRY_DELAY_SECONDS = 0.5

# Statuses worth retrying; 0 is a network-level failure.
_RETRYABLE_STATUSES = frozenset({0, 408, 413, 429, 500, 502, 503, 504, 521, 522, 524})


@dataclass(frozen=True, slots=True)
class HttpError:
    """HTTP error details.

    Attributes:
        url: The URL that failed
        status: HTTP status code (0 for network errors)
        message: Human-readable error message
    """

    url: str
    status: int
    message: str

    def __str__(self) -> str:
        if self.status:
            return f"HTTP {self.status}: {self.message} ({self.url})"
        return f"{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    """Protocol for HTTP GET operations.

    ``headers`` carries per-request headers such as ``authorization``.
    """

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]: ...

    def get_text(self, url: str, headers: Mapping[str, str] | None = None) -> Result[str, HttpError]: ...

    def get_bytes(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[bytes, HttpError]: ...


def _decode_json(url: str, body: bytes) -> Result[dict[str, Any], HttpError]:
    try:
        data_obj: object = json.loads(body.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        return Err(HttpError(url=url, status=0, message=f"JSON parse error: {e}"))
    data = as_str_dict(data_obj)
    if data is None:
        return Err(HttpError(url=url, status=0, message="Expected JSON object"))
    return Ok(cast(dict[str, Any], data))


def _decode_text(url: str, body: bytes) -> Result[str, HttpError]:
    try:
        return Ok(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        return Err(HttpError(url=url, status=0, message=f"Decode error: {e}"))


class RealHttpClient:
    """Real HTTP client using urllib.

    Failed requests with a retryable status (network errors, 408, 429, 5xx)
    are retried ``retries`` times before the error is returned. 401/403/404
    are returned immediately.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        user_agent: str = f"relm/{__version__}",
        retries: int = DEFAULT_RETRIES,
    ) -> None:
        self.timeout = timeout
        self.user_agent = user_agent
        self.retries = retries
        self._ssl_context = ssl.create_default_context()

    def _request_once(self, url: str, headers: Mapping[str, str]) -> Result[bytes, HttpError]:
        try:
            req = urllib.request.Request(
                url,
                headers={"User-Agent": self.user_agent, **headers},
            )
            with urllib.request.urlopen(
                req,
                timeout=self.timeout,
                context=self._ssl_context,
            ) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            return Err(HttpError(url=url, status=0, message=str(e.reason)))
        except TimeoutError:
            return Err(HttpError(url=url, status=0, message="Request timed out"))
        except ValueError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))
        except OSError as e:
            return Err(HttpError(url=url, status=0, message=str(e)))

    def _request(self, url: str, headers: Mapping[str, str] | None) -> Result[bytes, HttpError]:
        attempt = 0
        while True:
            result = self._request_once(url, headers or {})
            if isinstance(result, Ok):
                return result
            if result.error.status not in _RETRYABLE_STATUSES or attempt >= self.retries:
                return result
            attempt += 1
            sleep(_RETRY_DELAY_SECONDS * attempt)

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        result = self._request(url, headers)
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def get_text(self, url: str, headers: Mapping[str, str] | None = None) -> Result[str, HttpError]:
        result = self._request(url, headers)
        if isinstance(result, Err):
            return result
        return _decode_text(url, result.value)

    def get_bytes(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[bytes, HttpError]:
        return self._request(url, headers)


class MockHttpClient:
    """Mock HTTP client for testing.

    Responses are registered per URL as bytes (or an HttpError). Unknown URLs
    answer 404. Every call is recorded with its headers; recording is
    thread-safe because signature and key downloads run concurrently.

    Usage:
        client = MockHttpClient()
        client.set_json("https://registry.npmjs.org/pkg", {"versions": {}})
        result = client.get_json("https://registry.npmjs.org/pkg")
    """

    def __init__(self) -> None:
        self._responses: dict[str, bytes | HttpError] = {}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []
        self.headers: dict[str, dict[str, str]] = {}

    def set_json(self, url: str, response: dict[str, Any] | HttpError) -> None:
        if isinstance(response, HttpError):
            self._responses[url] = response
        else:
            self._responses[url] = json.dumps(response).encode("utf-8")

    def set_text(self, url: str, response: str | HttpError) -> None:
        if isinstance(response, HttpError):
            self._responses[url] = response
        else:
            self._responses[url] = response.encode("utf-8")

    def set_bytes(self, url: str, response: bytes | HttpError) -> None:
        self._responses[url] = response

    def _lookup(
        self, method: str, url: str, headers: Mapping[str, str] | None
    ) -> Result[bytes, HttpError]:
        with self._lock:
            self.calls.append((method, url))
            self.headers[url] = dict(headers or {})

        response = self._responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not found (mock)"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)

    def get_json(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[dict[str, Any], HttpError]:
        result = self._lookup("get_json", url, headers)
        if isinstance(result, Err):
            return result
        return _decode_json(url, result.value)

    def get_text(self, url: str, headers: Mapping[str, str] | None = None) -> Result[str, HttpError]:
        result = self._lookup("get_text", url, headers)
        if isinstance(result, Err):
            return result
        return _decode_text(url, result.value)

    def get_bytes(
        self, url: str, headers: Mapping[str, str] | None = None
    ) -> Result[bytes, HttpError]:
        return self._lookup("get_bytes", url, headers)
