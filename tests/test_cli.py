"""Tests for the CLI module."""

import pytest

from httpfile.cli import build_parser, parse_cli, parse_var_overrides, validate_args


@pytest.fixture
def http_file(tmp_path):
    f = tmp_path / "api.http"
    f.write_text("GET https://example.com\n", encoding="utf-8")
    return str(f)


class TestBuildParser:
    """Tests for the argument parser construction."""

    def test_list_command(self):
        args = build_parser().parse_args(["list", "api.http"])
        assert args.command == "list"
        assert args.http_file == "api.http"
        assert args.format == "auto"
        assert args.json is False

    def test_run_defaults(self):
        args = build_parser().parse_args(["run", "api.http"])
        assert args.name is None
        assert args.index is None
        assert args.all is False
        assert args.env is None
        assert args.var == []
        assert args.timeout == 30.0
        assert args.proxy is None
        assert args.insecure is False
        assert args.follow_redirects is True

    def test_run_options(self):
        args = build_parser().parse_args([
            "run", "api.http",
            "--name", "Get users",
            "--env", "dev",
            "--var", "a=1",
            "--var", "b=2",
            "--proxy", "http://127.0.0.1:8080",
            "--insecure",
            "--no-follow",
            "--format", "vscode",
        ])
        assert args.name == "Get users"
        assert args.env == "dev"
        assert args.var == ["a=1", "b=2"]
        assert args.proxy == "http://127.0.0.1:8080"
        assert args.insecure is True
        assert args.follow_redirects is False
        assert args.format == "vscode"

    def test_selectors_are_exclusive(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["run", "api.http", "--all", "--index", "2"])

    def test_invalid_format(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["list", "api.http", "--format", "postman"])

    def test_missing_command(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_import_curl(self):
        args = build_parser().parse_args(["import-curl", "curl https://x"])
        assert args.curl_command == "curl https://x"


class TestParseVarOverrides:
    """Tests for --var parsing."""

    def test_pairs(self):
        assert parse_var_overrides(["a=1", "b = x=y"]) == {"a": "1", "b": " x=y"}

    def test_missing_equals(self):
        with pytest.raises(ValueError, match="KEY=VALUE"):
            parse_var_overrides(["nope"])

    def test_empty_key(self):
        with pytest.raises(ValueError):
            parse_var_overrides(["=1"])


class TestValidateArgs:
    """Tests for argument validation."""

    def test_nonexistent_file_exits(self):
        args = build_parser().parse_args(["list", "/nonexistent/file.http"])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_valid_file_passes(self, http_file):
        args = build_parser().parse_args(["run", http_file, "--var", "a=1"])
        # Should not raise
        validate_args(args)

    def test_bad_var_exits(self, http_file):
        args = build_parser().parse_args(["run", http_file, "--var", "oops"])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_zero_index_exits(self, http_file):
        args = build_parser().parse_args(["run", http_file, "--index", "0"])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_non_positive_timeout_exits(self, http_file):
        args = build_parser().parse_args(["run", http_file, "--timeout", "0"])
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_missing_env_dir_exits(self, http_file, tmp_path):
        args = build_parser().parse_args(
            ["run", http_file, "--env-dir", str(tmp_path / "absent")]
        )
        with pytest.raises(SystemExit):
            validate_args(args)

    def test_empty_curl_command_exits(self):
        args = build_parser().parse_args(["import-curl", "   "])
        with pytest.raises(SystemExit):
            validate_args(args)


class TestParseCli:
    """Tests for the full parse_cli flow."""

    def test_full_parse_flow(self, http_file):
        args = parse_cli(["run", http_file, "--index", "1", "--env", "dev"])
        assert args.http_file == http_file
        assert args.index == 1
        assert args.env == "dev"
