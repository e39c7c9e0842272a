"""Tests for relm.net.http module."""

from __future__ import annotations

import pytest

from relm.core.result import Err, Ok, Result
from relm.net import http as http_module
from relm.net.http import HttpClient, HttpError, MockHttpClient, RealHttpClient


class TestHttpError:
    def test_str_with_status(self) -> None:
        error = HttpError(url="https://r/pkg", status=404, message="Not Found")
        assert str(error) == "HTTP 404: Not Found (https://r/pkg)"

    def test_str_network_error(self) -> None:
        error = HttpError(url="https://r/pkg", status=0, message="connection refused")
        assert str(error) == "connection refused (https://r/pkg)"


class TestMockHttpClient:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(MockHttpClient(), HttpClient)
        assert isinstance(RealHttpClient(), HttpClient)

    def test_json_response(self) -> None:
        client = MockHttpClient()
        client.set_json("https://r/pkg", {"name": "pkg"})

        result = client.get_json("https://r/pkg")

        assert result == Ok({"name": "pkg"})

    def test_unknown_url_is_404(self) -> None:
        result = MockHttpClient().get_text("https://r/missing")

        assert isinstance(result, Err)
        assert result.error.status == 404

    def test_error_response(self) -> None:
        client = MockHttpClient()
        client.set_bytes("https://r/t.tgz", HttpError(url="https://r/t.tgz", status=500, message="oops"))

        result = client.get_bytes("https://r/t.tgz")

        assert isinstance(result, Err)
        assert result.error.status == 500

    def test_records_calls_and_headers(self) -> None:
        client = MockHttpClient()
        client.set_text("https://r/a.sig", "c2ln")

        client.get_text("https://r/a.sig", {"authorization": "token abc"})

        assert client.calls == [("get_text", "https://r/a.sig")]
        assert client.headers["https://r/a.sig"] == {"authorization": "token abc"}

    def test_json_must_be_object(self) -> None:
        client = MockHttpClient()
        client.set_text("https://r/list", "[1, 2]")

        result = client.get_json("https://r/list")

        assert isinstance(result, Err)
        assert "Expected JSON object" in result.error.message


class TestRetries:
    @pytest.fixture(autouse=True)
    def no_sleep(self, monkeypatch: pytest.MonkeyPatch) -> list[float]:
        delays: list[float] = []
        monkeypatch.setattr(http_module, "sleep", delays.append)
        return delays

    def _scripted(
        self, monkeypatch: pytest.MonkeyPatch, client: RealHttpClient, statuses: list[int]
    ) -> list[str]:
        calls: list[str] = []

        def fake_once(url: str, headers: object) -> Result[bytes, HttpError]:
            calls.append(url)
            status = statuses[min(len(calls) - 1, len(statuses) - 1)]
            if status == 200:
                return Ok(b"{}")
            return Err(HttpError(url=url, status=status, message="fail"))

        monkeypatch.setattr(client, "_request_once", fake_once)
        return calls

    def test_retries_transient_then_succeeds(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = RealHttpClient()
        calls = self._scripted(monkeypatch, client, [503, 0, 200])

        result = client.get_json("https://r/pkg")

        assert result == Ok({})
        assert len(calls) == 3

    def test_gives_up_after_two_retries(self, monkeypatch: pytest.MonkeyPatch) -> None:
        client = RealHttpClient()
        calls = self._scripted(monkeypatch, client, [502])

        result = client.get_bytes("https://r/pkg")

        assert isinstance(result, Err)
        assert result.error.status == 502
        assert len(calls) == 3

    @pytest.mark.parametrize("status", [401, 403, 404])
    def test_client_errors_not_retried(self, monkeypatch: pytest.MonkeyPatch, status: int) -> None:
        client = RealHttpClient()
        calls = self._scripted(monkeypatch, client, [status])

        result = client.get_text("https://r/pkg")

        assert isinstance(result, Err)
        assert len(calls) == 1
