# Tests for the upstream Gemini call and reply extraction.

from unittest.mock import patch

import httpx
import pytest

from config.settings import get_settings
from relay.errors import UpstreamError
from relay.gemini import build_payload, extract_reply, generate_reply
from relay.schemas import ChatRequest
from tests.fakes import gemini_body, make_http_client, make_response


def _request(**overrides):
    data = {"message": "hello", "history": [], "character": "Echo", "persona": "funny"}
    data.update(overrides)
    return ChatRequest.model_validate(data)


class TestExtractReply:
    def test_joins_fragments_and_trims(self):
        assert extract_reply(gemini_body("  Hey", " there!  ")) == "Hey there!"

    def test_missing_text_counts_as_empty(self):
        data = {"candidates": [{"content": {"parts": [{"text": "a"}, {}, {"text": None}, {"text": "b"}]}}]}
        assert extract_reply(data) == "ab"

    def test_only_first_candidate_is_used(self):
        data = gemini_body("first")
        data["candidates"].append({"content": {"parts": [{"text": "second"}]}})
        assert extract_reply(data) == "first"

    @pytest.mark.parametrize(
        "data",
        [
            None,
            {},
            {"candidates": []},
            {"candidates": [{}]},
            {"candidates": [{"content": {}}]},
            {"candidates": [{"content": {"parts": "nope"}}]},
            {"candidates": "nope"},
        ],
    )
    def test_missing_path_is_empty(self, data):
        assert extract_reply(data) == ""


class TestBuildPayload:
    def test_generation_config(self):
        payload = build_payload(_request())
        assert payload["generationConfig"] == {"temperature": 0.8, "maxOutputTokens": 512}
        assert payload["contents"][-1]["parts"][0]["text"] == "hello"


class TestGenerateReply:
    def test_success(self):
        client = make_http_client(make_response(200, gemini_body("Hey", " there!")))
        with patch("httpx.Client", return_value=client) as mock_cls:
            assert generate_reply(_request()) == "Hey there!"

        mock_cls.assert_called_once_with(timeout=None)
        args, kwargs = client.post.call_args
        assert args[0] == "https://gemini.example/v1beta/models/gemini-test:generateContent"
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["json"]["contents"][0]["parts"][0]["text"].startswith(
            "You are roleplaying as Echo"
        )

    def test_timeout_from_settings(self, monkeypatch):
        monkeypatch.setenv("UPSTREAM_TIMEOUT", "12.5")
        get_settings.cache_clear()
        client = make_http_client(make_response(200, gemini_body("ok")))
        with patch("httpx.Client", return_value=client) as mock_cls:
            generate_reply(_request())
        mock_cls.assert_called_once_with(timeout=12.5)

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY")
        get_settings.cache_clear()
        with patch("httpx.Client") as mock_cls:
            with pytest.raises(UpstreamError, match="Missing GEMINI_API_KEY"):
                generate_reply(_request())
        mock_cls.assert_not_called()

    def test_upstream_error_message_is_passed_through(self):
        client = make_http_client(make_response(429, {"error": {"message": "rate limited"}}))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError) as exc_info:
                generate_reply(_request())
        assert exc_info.value.message == "rate limited"

    def test_upstream_error_without_message(self):
        client = make_http_client(make_response(503, {"oops": True}))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError, match="Gemini API request failed."):
                generate_reply(_request())

    def test_unparsable_success_body(self):
        client = make_http_client(make_response(200, json_error=ValueError("bad json")))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError, match="invalid response"):
                generate_reply(_request())

    def test_unparsable_error_body(self):
        client = make_http_client(make_response(502, json_error=ValueError("bad json")))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError, match="Gemini API request failed."):
                generate_reply(_request())

    def test_transport_failure(self):
        client = make_http_client(error=httpx.ConnectError("connection refused"))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError, match="connection refused"):
                generate_reply(_request())

    def test_whitespace_reply_is_an_error(self):
        client = make_http_client(make_response(200, gemini_body("  ", "\n")))
        with patch("httpx.Client", return_value=client):
            with pytest.raises(UpstreamError, match="empty response"):
                generate_reply(_request())
