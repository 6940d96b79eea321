"""Tests for the command-line interface."""

import json

import pytest
from shortlinks.cli import build_parser, main


@pytest.mark.asyncio
class TestCLI:
    """Run CLI commands against the in-memory backend."""

    async def test_shorten(self, capsys):
        exit_code = await main(["--backend", "memory", "shorten", "https://example.com/long"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["success"] is True
        assert len(output["short_code"]) == 7
        assert output["original_url"] == "https://example.com/long"

    async def test_shorten_custom_code(self, capsys):
        exit_code = await main([
            "--backend", "memory",
            "shorten", "https://example.com/long",
            "--custom-code", "my-link",
            "--owner", "user-1",
        ])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["short_code"] == "my-link"

    async def test_shorten_invalid_url(self, capsys):
        exit_code = await main(["--backend", "memory", "shorten", "not-a-url"])

        assert exit_code == 1
        output = json.loads(capsys.readouterr().err)
        assert output["success"] is False
        assert "Invalid URL" in output["error"]

    async def test_resolve_not_found(self, capsys):
        exit_code = await main(["--backend", "memory", "resolve", "missing"])

        assert exit_code == 1
        assert "not found" in json.loads(capsys.readouterr().err)["error"]

    async def test_info_not_found(self, capsys):
        exit_code = await main(["--backend", "memory", "info", "missing"])

        assert exit_code == 1

    async def test_list_empty(self, capsys):
        exit_code = await main(["--backend", "memory", "list", "--owner", "user-1"])

        assert exit_code == 0
        output = json.loads(capsys.readouterr().out)
        assert output["total_count"] == 0
        assert output["urls"] == []

    async def test_health(self, capsys):
        exit_code = await main(["--backend", "memory", "health"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["health"]["overall"] is True

    async def test_init_db(self, capsys):
        exit_code = await main(["--backend", "memory", "init-db"])

        assert exit_code == 0
        assert json.loads(capsys.readouterr().out)["success"] is True

    async def test_no_command(self, capsys):
        assert await main([]) == 1


def test_parser_requires_owner_for_list():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["list"])
