import json
from pathlib import Path

import pytest

from marketdesk.config.settings import Settings, UpstreamSettings
from marketdesk.providers.finnhub import MARKET_STATUS_PATH, QUOTE_PATH, SYMBOL_CATALOG_PATH, UpstreamResponse


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeHTTPResponse:
    """Stands in for the object ``urlopen`` returns."""

    def __init__(self, status: int, body: str | bytes, read_error: Exception | None = None) -> None:
        self.status = status
        self._body = body if isinstance(body, bytes) else body.encode("utf-8")
        self._read_error = read_error

    def read(self) -> bytes:
        if self._read_error is not None:
            raise self._read_error
        return self._body

    def __enter__(self) -> "FakeHTTPResponse":
        return self

    def __exit__(self, *exc) -> bool:
        return False


class FakeSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def ok_response(payload, path: str = "/") -> UpstreamResponse:
    return UpstreamResponse(url=path, status_code=200, body=json.dumps(payload))


def status_response(status_code: int, path: str = "/") -> UpstreamResponse:
    return UpstreamResponse(url=path, status_code=status_code, body="")


class FakeFinnhubClient:
    """Answers from scripted responses; quotes are keyed by ticker."""

    def __init__(
        self,
        catalog: UpstreamResponse | None = None,
        quotes: dict[str, UpstreamResponse] | None = None,
        market_status: UpstreamResponse | None = None,
    ) -> None:
        self.catalog = catalog
        self.quotes = quotes or {}
        self.market_status = market_status
        self.calls: list[tuple[str, dict]] = []
        self.retry_budgets: list[tuple[float, int]] = []

    def fetch(self, path: str, params: dict | None = None) -> UpstreamResponse:
        params = params or {}
        self.calls.append((path, params))
        if path == SYMBOL_CATALOG_PATH:
            return self.catalog or status_response(500, path)
        if path == MARKET_STATUS_PATH:
            return self.market_status or status_response(500, path)
        if path == QUOTE_PATH:
            return self.quotes.get(params["symbol"], status_response(404, path))
        raise AssertionError(f"unexpected path {path}")

    def fetch_with_retry(self, path, params, delay_seconds, max_attempts) -> UpstreamResponse:
        self.retry_budgets.append((delay_seconds, max_attempts))
        return self.fetch(path, params)

    def quote_calls(self) -> list[str]:
        return [params["symbol"] for path, params in self.calls if path == QUOTE_PATH]


def catalog_entry(symbol: str, description: str = "") -> dict:
    return {
        "currency": "USD",
        "description": description or f"{symbol} INC",
        "displaySymbol": symbol,
        "figi": f"BBG-{symbol}",
        "mic": "XNAS",
        "symbol": symbol,
        "type": "Common Stock",
    }


def quote_payload(current: float, timestamp: int = 1700000000) -> dict:
    return {
        "c": current,
        "d": 1.5,
        "dp": 1.01,
        "h": current + 2,
        "l": current - 2,
        "o": current - 1,
        "pc": current - 1.5,
        "t": timestamp,
    }


def market_status_payload(is_open: bool) -> dict:
    return {
        "exchange": "US",
        "holiday": None,
        "isOpen": is_open,
        "session": "regular" if is_open else None,
        "t": 1700000000,
        "timezone": "America/New_York",
    }


@pytest.fixture
def allowlist_file(tmp_path: Path) -> Path:
    path = tmp_path / "top_symbols.txt"
    path.write_text("# tracked\nAAPL\nGOOGL\nmsft\n\n", encoding="utf-8")
    return path


@pytest.fixture
def settings(allowlist_file: Path) -> Settings:
    return Settings(
        allowlist_path=allowlist_file,
        upstream=UpstreamSettings(api_token="test-token", base_url="https://finnhub.test/api/v1"),
    )
