from __future__ import annotations

import logging
import time
from http.client import HTTPException
from typing import Any, Callable, Optional
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

from pydantic import BaseModel, ConfigDict, TypeAdapter, ValidationError

from marketdesk.errors import ConfigurationError, MalformedPayloadError, UpstreamError

logger = logging.getLogger(__name__)


SYMBOL_CATALOG_PATH = "/stock/symbol"
QUOTE_PATH = "/quote"
MARKET_STATUS_PATH = "/stock/market-status"

TOKEN_HEADER = "X-Finnhub-Token"
RATE_LIMITED = 429


class UpstreamResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    status_code: Optional[int] = None
    # raw bytes; decoded in decode_payload
    body: Optional[bytes] = None
    error: Optional[str] = None
    attempts: int = 1

    @property
    def ok(self) -> bool:
        return self.status_code is not None and 200 <= self.status_code < 300

    @property
    def rate_limited(self) -> bool:
        return self.status_code == RATE_LIMITED


def _read_error_body(exc: HTTPError) -> bytes | None:
    try:
        return exc.read()
    except (OSError, HTTPException, AttributeError):
        return None


class FinnhubClient:
    """Plain I/O against the Finnhub REST API.

    Nothing here caches; callers decide what to keep. Upstream conditions
    (non-2xx, rate limits, transport errors) come back as an
    ``UpstreamResponse`` and only ``decode_payload`` turns them into
    exceptions.
    """

    def __init__(
        self,
        base_url: str,
        api_token: str | None,
        timeout_seconds: float = 10.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not api_token:
            raise ConfigurationError("Finnhub API token is not configured.")
        self._base_url = base_url.rstrip("/")
        self._api_token = api_token
        self._timeout = timeout_seconds
        self._sleep = sleep

    def _build_url(self, path: str, params: dict[str, str] | None) -> str:
        url = f"{self._base_url}{path}"
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    def fetch(self, path: str, params: dict[str, str] | None = None) -> UpstreamResponse:
        url = self._build_url(path, params)
        request = Request(url, headers={TOKEN_HEADER: self._api_token})
        try:
            with urlopen(request, timeout=self._timeout) as response:
                body = response.read()
                return UpstreamResponse(url=url, status_code=response.status, body=body)
        except HTTPError as exc:
            return UpstreamResponse(url=url, status_code=exc.code, body=_read_error_body(exc))
        except (OSError, HTTPException) as exc:
            # URLError, timeouts, resets and short reads all count as a failed fetch
            logger.warning(f"Transport error for {url}: {exc}")
            return UpstreamResponse(url=url, error=str(exc) or type(exc).__name__)

    def fetch_with_retry(
        self,
        path: str,
        params: dict[str, str] | None,
        delay_seconds: float,
        max_attempts: int,
    ) -> UpstreamResponse:
        """GET ``path``, waiting ``delay_seconds`` after each 429.

        At most ``max_attempts`` requests are sent. The last response is
        returned as-is, so an exhausted budget yields the final 429.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        attempt = 0
        while True:
            attempt += 1
            response = self.fetch(path, params)
            if not response.rate_limited or attempt >= max_attempts:
                return response.model_copy(update={"attempts": attempt})
            logger.info(
                f"Rate limit exceeded (429) for {response.url}, attempt {attempt}/{max_attempts}. "
                f"Retrying in {delay_seconds} seconds..."
            )
            self._sleep(delay_seconds)


def decode_payload(response: UpstreamResponse, schema: Any) -> Any:
    if not response.ok:
        if response.status_code is None:
            message = f"Upstream request to {response.url} failed: {response.error}"
        else:
            message = (
                f"Upstream request to {response.url} returned {response.status_code} "
                f"after {response.attempts} attempt(s)"
            )
        raise UpstreamError(message, status_code=response.status_code)

    try:
        text = (response.body or b"").decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError(f"Payload from {response.url} is not valid UTF-8") from exc

    try:
        return TypeAdapter(schema).validate_json(text)
    except ValidationError as exc:
        raise MalformedPayloadError(
            f"Malformed payload from {response.url}: {exc.error_count()} validation error(s)"
        ) from exc
