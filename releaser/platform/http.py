"""JSON reads from package registries.

Publish steps ask a registry whether a version already exists before they
upload. They do it through HttpClient so tests can swap in MockHttpClient
and never reach the network.
"""

from __future__ import annotations

import json
import ssl
import urllib.error
import urllib.request
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol, cast, runtime_checkable

from releaser.core.result import Err, Ok, Result
from releaser.core.structured import as_str_dict

__all__ = [
    "HttpClient",
    "HttpError",
    "MockHttpClient",
    "RealHttpClient",
]

JsonObject = dict[str, Any]

NETWORK_FAILURE = 0


@dataclass(frozen=True, slots=True)
class HttpError:
    """A failed registry read.

    status is the HTTP status code, or 0 when no response arrived
    (DNS failure, refused connection, timeout, unparsable body).
    """

    url: str
    status: int
    message: str

    @property
    def not_found(self) -> bool:
        return self.status == 404

    def __str__(self) -> str:
        prefix = f"HTTP {self.status}: " if self.status != NETWORK_FAILURE else ""
        return f"{prefix}{self.message} ({self.url})"


@runtime_checkable
class HttpClient(Protocol):
    def get_json(self, url: str) -> Result[JsonObject, HttpError]: ...


class RealHttpClient:
    """urllib-backed client using the system certificate store."""

    def __init__(self, timeout: float = 30.0, user_agent: str = "releaser/0.1.0") -> None:
        self.timeout = timeout
        self.headers = {"User-Agent": user_agent, "Accept": "application/json"}
        self._tls = ssl.create_default_context()

    def get_json(self, url: str) -> Result[JsonObject, HttpError]:
        match self._fetch(url):
            case Err() as failed:
                return failed
            case Ok(body):
                pass

        def fail(message: str) -> Err[HttpError]:
            return Err(HttpError(url=url, status=NETWORK_FAILURE, message=message))

        try:
            parsed: object = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            return fail(f"Invalid JSON response: {e}")
        obj = as_str_dict(parsed)
        if obj is None:
            return fail("Response is not a JSON object")
        return Ok(cast(JsonObject, obj))

    def _fetch(self, url: str) -> Result[bytes, HttpError]:
        request = urllib.request.Request(url, headers=self.headers)
        try:
            with urllib.request.urlopen(request, timeout=self.timeout, context=self._tls) as response:
                return Ok(response.read())
        except urllib.error.HTTPError as e:
            return Err(HttpError(url=url, status=e.code, message=str(e.reason)))
        except urllib.error.URLError as e:
            reason = e.reason if isinstance(e.reason, str) else str(e.reason)
            return Err(HttpError(url=url, status=NETWORK_FAILURE, message=reason))
        except TimeoutError:
            return Err(HttpError(url=url, status=NETWORK_FAILURE, message="Request timed out"))
        except (ValueError, OSError) as e:
            return Err(HttpError(url=url, status=NETWORK_FAILURE, message=str(e)))


class MockHttpClient:
    """Answers from a table of canned responses; any other URL is a 404.

    Usage:
        client = MockHttpClient({PYPI_URL: {"info": {"version": "1.0.0"}}})
        client.set_json(OTHER_URL, HttpError(url=OTHER_URL, status=503, message="Unavailable"))
    """

    def __init__(self, responses: Mapping[str, JsonObject | HttpError] | None = None) -> None:
        self.responses: dict[str, JsonObject | HttpError] = dict(responses or {})
        self.calls: list[str] = []

    def set_json(self, url: str, response: JsonObject | HttpError) -> None:
        self.responses[url] = response

    def get_json(self, url: str) -> Result[JsonObject, HttpError]:
        self.calls.append(url)
        response = self.responses.get(url)
        if response is None:
            return Err(HttpError(url=url, status=404, message="Not Found"))
        if isinstance(response, HttpError):
            return Err(response)
        return Ok(response)
