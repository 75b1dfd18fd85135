"""Tests for request resolution and execution."""

from unittest.mock import MagicMock, patch

import pytest
import requests

from httpfile.engine import (
    ResolvedRequest,
    ResponseRecord,
    execute_request,
    merge_variables,
    print_response,
    resolve_request,
)
from httpfile.errors import InvalidRequestError, RequestFailedError
from httpfile.parser import ParsedRequest


def _resolved(**overrides) -> ResolvedRequest:
    fields = {
        "name": None,
        "method": "GET",
        "url": "https://api.example.com/users",
        "headers": {"Accept": "application/json"},
        "body": None,
        "missing": [],
    }
    fields.update(overrides)
    return ResolvedRequest(**fields)


def _mock_response(status_code: int = 200, text: str = '{"ok": true}') -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.reason = "OK" if status_code == 200 else "Not Found"
    resp.text = text
    resp.content = text.encode("utf-8")
    resp.headers = {"Content-Type": "application/json"}
    return resp


class TestMergeVariables:
    """Tests for merge_variables."""

    def test_file_variables_win(self):
        request = ParsedRequest(url="/x", variables={"host": "file", "a": "1"})
        merged = merge_variables(request, {"host": "env", "b": "2"})
        assert merged == {"host": "file", "a": "1", "b": "2"}

    def test_without_environment(self):
        request = ParsedRequest(url="/x", variables={"a": "1"})
        assert merge_variables(request) == {"a": "1"}

    def test_does_not_mutate_inputs(self):
        request = ParsedRequest(url="/x", variables={"a": "1"})
        environment = {"b": "2"}
        merge_variables(request, environment)
        assert environment == {"b": "2"}
        assert request.variables == {"a": "1"}


class TestResolveRequest:
    """Tests for resolve_request."""

    def test_substitutes_all_fields(self):
        request = ParsedRequest(
            name="Create",
            method="{{verb}}",
            url="https://{{host}}/users",
            headers={"Authorization": "Bearer {{token}}"},
            body='{"id": "{{id}}"}',
        )
        variables = {"verb": "POST", "host": "example.com", "token": "t", "id": "7"}
        resolved = resolve_request(request, variables)
        assert resolved.name == "Create"
        assert resolved.method == "POST"
        assert resolved.url == "https://example.com/users"
        assert resolved.headers == {"Authorization": "Bearer t"}
        assert resolved.body == '{"id": "7"}'
        assert resolved.missing == []

    def test_header_names_are_not_substituted(self):
        request = ParsedRequest(url="/x", headers={"X-{{a}}": "{{a}}"})
        resolved = resolve_request(request, {"a": "1"})
        assert resolved.headers == {"X-{{a}}": "1"}

    def test_missing_listed_once(self):
        request = ParsedRequest(
            url="https://{{host}}/{{host}}",
            headers={"X": "{{token}}"},
        )
        resolved = resolve_request(request, {})
        assert resolved.missing == ["host", "token"]
        assert resolved.url == "https://{{host}}/{{host}}"

    def test_body_none_stays_none(self):
        assert resolve_request(ParsedRequest(url="/x"), {}).body is None

    def test_does_not_mutate_request(self):
        request = ParsedRequest(url="{{u}}")
        resolve_request(request, {"u": "https://x"})
        assert request.url == "{{u}}"


class TestExecuteRequest:
    """Tests for execute_request."""

    @patch("httpfile.engine.requests.request")
    def test_sends_request(self, mock_request):
        mock_request.return_value = _mock_response()
        record = execute_request(_resolved(method="post", body="{}"), timeout=5)

        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://api.example.com/users"
        assert kwargs["headers"] == {"Accept": "application/json"}
        assert kwargs["data"] == b"{}"
        assert kwargs["timeout"] == 5
        assert kwargs["verify"] is True
        assert kwargs["allow_redirects"] is True
        assert kwargs["proxies"] is None

        assert record.status == 200
        assert record.status_text == "OK"
        assert record.body == '{"ok": true}'
        assert record.size == len('{"ok": true}')
        assert record.headers == {"Content-Type": "application/json"}
        assert record.time_ms >= 0
        assert record.is_error is False

    @patch("httpfile.engine.requests.request")
    def test_proxy_and_options(self, mock_request):
        mock_request.return_value = _mock_response()
        execute_request(
            _resolved(),
            proxy="http://127.0.0.1:8080",
            verify=False,
            follow_redirects=False,
        )
        kwargs = mock_request.call_args.kwargs
        assert kwargs["proxies"] == {
            "http": "http://127.0.0.1:8080",
            "https": "http://127.0.0.1:8080",
        }
        assert kwargs["verify"] is False
        assert kwargs["allow_redirects"] is False
        assert kwargs["data"] is None

    @patch("httpfile.engine.requests.request")
    def test_error_status(self, mock_request):
        mock_request.return_value = _mock_response(404, "missing")
        record = execute_request(_resolved())
        assert record.status == 404
        assert record.is_error is True

    def test_relative_url_rejected(self):
        with pytest.raises(InvalidRequestError, match="http://"):
            execute_request(_resolved(url="/users"))

    def test_unresolved_host_rejected(self):
        with pytest.raises(InvalidRequestError):
            execute_request(_resolved(url="{{host}}/users"))

    @patch("httpfile.engine.requests.request")
    def test_connection_error_wrapped(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("Connection refused")
        with pytest.raises(RequestFailedError, match="Connection refused"):
            execute_request(_resolved())


class TestPrintResponse:
    """Tests for the response printer."""

    def test_print_response(self, capsys):
        record = ResponseRecord(
            status=201,
            status_text="Created",
            headers={"Content-Type": "application/json"},
            body='{"secret": "data"}',
            time_ms=12,
            size=18,
        )
        print_response(_resolved(name="Create user"), record)
        out = capsys.readouterr().out
        assert "Create user" in out
        assert "201 Created" in out
        assert "12 ms" in out
        assert "Content-Type: application/json" in out
        assert "secret" in out

    def test_print_response_without_name(self, capsys):
        record = ResponseRecord(204, "No Content", {}, "", 1, 0)
        print_response(_resolved(), record)
        out = capsys.readouterr().out
        assert "GET https://api.example.com/users" in out
        assert "Response Body" not in out
