"""Unit tests for response classification."""

import json

from trisearch.classify import (
    ApiError,
    BlockedChallenge,
    BlockedEmpty,
    MalformedJson,
    NetworkError,
    Success,
    TransientFetchFailure,
    classify_response,
)
from trisearch.errors import FailureCategory


class TestClassifyResponse:
    def test_success(self) -> None:
        body = json.dumps({"status_code": 0, "data": []})
        result = classify_response(body, 200)
        assert isinstance(result, Success)
        assert result.payload["data"] == []

    def test_success_without_status_code(self) -> None:
        assert isinstance(classify_response('{"data": []}', 200), Success)

    def test_empty_body(self) -> None:
        result = classify_response("", 200)
        assert isinstance(result, BlockedEmpty)
        assert result.status == 200
        assert result.category is FailureCategory.BLOCKED

    def test_whitespace_body(self) -> None:
        assert isinstance(classify_response("  \n\t ", 200), BlockedEmpty)

    def test_none_body(self) -> None:
        assert isinstance(classify_response(None, 0), BlockedEmpty)

    def test_html_challenge(self) -> None:
        body = "<!DOCTYPE html><html><body>verify you are human</body></html>"
        result = classify_response(body, 200)
        assert isinstance(result, BlockedChallenge)
        assert result.category is FailureCategory.CHALLENGE

    def test_html_without_doctype(self) -> None:
        assert isinstance(classify_response("<HTML><p>captcha</p></HTML>", 403), BlockedChallenge)

    def test_html_after_leading_whitespace(self) -> None:
        assert isinstance(classify_response("\n\n  <!doctype html><p>hi</p>", 200), BlockedChallenge)

    def test_markup_inside_json_is_success(self) -> None:
        item = {"id": "1", "desc": "how to write <html> tags <!DOCTYPE>"}
        body = json.dumps({"status_code": 0, "data": [{"type": 1, "item": item}]})
        result = classify_response(body, 200)
        assert isinstance(result, Success)

    def test_malformed_json_snippet(self) -> None:
        body = "{not json" + "x" * 300
        result = classify_response(body, 200)
        assert isinstance(result, MalformedJson)
        assert len(result.snippet) == 100
        assert result.snippet.startswith("{not json")

    def test_json_array_is_malformed(self) -> None:
        assert isinstance(classify_response("[1, 2]", 200), MalformedJson)

    def test_api_error(self) -> None:
        body = json.dumps({"status_code": 10201, "status_msg": "too many requests"})
        result = classify_response(body, 200)
        assert isinstance(result, ApiError)
        assert result.status_code == 10201
        assert "too many requests" in result.describe()

    def test_network_error_wins(self) -> None:
        result = classify_response('{"data": []}', 200, error="net::ERR_TIMED_OUT")
        assert isinstance(result, NetworkError)
        assert result.message == "net::ERR_TIMED_OUT"
        assert result.category is FailureCategory.NETWORK

    def test_failures_share_base(self) -> None:
        for result in (
            classify_response("", 200),
            classify_response("<html>", 200),
            classify_response("oops", 200),
            classify_response(None, 0, error="boom"),
        ):
            assert isinstance(result, TransientFetchFailure)
