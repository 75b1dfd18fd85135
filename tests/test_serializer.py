"""Tests for writing requests back to request file text."""

from httpfile.parser import HttpFileFormat, ParsedRequest, detect_format, parse_jetbrains
from httpfile.serializer import serialize_request, serialize_requests


class TestSerializeRequest:
    """Tests for serialize_request."""

    def test_minimal(self):
        assert serialize_request(ParsedRequest(url="/x")) == "GET /x"

    def test_full_layout(self):
        request = ParsedRequest(
            name="Create user",
            method="POST",
            url="{{host}}/users",
            http_version="HTTP/1.1",
            headers={"Content-Type": "application/json"},
            body='{"a": 1}',
            metadata={"name": "createUser"},
        )
        assert serialize_request(request) == (
            "### Create user\n"
            "# @name createUser\n"
            "POST {{host}}/users HTTP/1.1\n"
            "Content-Type: application/json\n"
            "\n"
            '{"a": 1}'
        )

    def test_scripts(self):
        request = ParsedRequest(
            url="/x",
            pre_script="  request.variables.set('a', 1);",
            post_script="  client.log(response.status);",
        )
        assert serialize_request(request) == (
            "< {%\n"
            "  request.variables.set('a', 1);\n"
            "%}\n"
            "\n"
            "GET /x\n"
            "\n"
            "> {%\n"
            "  client.log(response.status);\n"
            "%}"
        )


class TestSerializeRequests:
    """Tests for serialize_requests."""

    def test_round_trip(self):
        original = [
            ParsedRequest(
                name="List",
                url="https://{{host}}/items",
                headers={"Accept": "application/json"},
                metadata={"no-redirect": "true"},
                post_script="client.log(1);",
            ),
            ParsedRequest(
                method="PUT",
                url="https://{{host}}/items/1",
                body="{\n  \"name\": \"x\"\n}",
                pre_script="request.variables.set('n', 1);",
            ),
        ]
        text = serialize_requests(original, variables={"host": "example.com"})
        parsed = parse_jetbrains(text)

        assert len(parsed) == 2
        for before, after in zip(original, parsed):
            assert after.name == before.name
            assert after.method == before.method
            assert after.url == before.url
            assert after.headers == before.headers
            assert after.body == before.body
            assert after.metadata == before.metadata
            assert after.pre_script == before.pre_script
            assert after.post_script == before.post_script
            assert after.variables == {"host": "example.com"}

    def test_variable_shaped_body_line_needs_jetbrains(self):
        request = ParsedRequest(method="POST", url="/x", body="@x = 1")
        text = serialize_requests([request])

        assert detect_format(text) is HttpFileFormat.VSCODE
        assert parse_jetbrains(text)[0].body == "@x = 1"

    def test_unnamed_requests_get_separators(self):
        text = serialize_requests([ParsedRequest(url="/a"), ParsedRequest(url="/b")])
        assert text == "###\nGET /a\n\n###\nGET /b\n"
