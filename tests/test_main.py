# tests/test_main.py
import json

import pytest

from beanstalk_core import LastError
from beanstalk_core import main as cli


class StubClient:
    """替代 BeanstalkClient，避免在 asyncio.run 中建立真实连接。"""

    stats_result = None

    def __init__(self, config):
        self.config = config

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return None

    async def stats(self):
        return self.stats_result

    def take_error(self):
        return LastError("NOT_FOUND", "任务或管道不存在")


def test_load_cli_config_from_toml_with_overrides(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('[beanstalk]\nhost = "10.0.0.5"\nport = 11400\n', encoding="utf-8")

    args = cli.build_parser().parse_args(["-c", str(f), "--port", "9999", "stats"])
    config = cli.load_cli_config(args)

    assert config.host == "10.0.0.5"
    assert config.port == 9999


def test_load_cli_config_reads_dotenv(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BEANSTALK_HOST", raising=False)
    (tmp_path / ".env").write_text("BEANSTALK_HOST=dotenv-host\n", encoding="utf-8")

    args = cli.build_parser().parse_args(["stats"])
    try:
        assert cli.load_cli_config(args).host == "dotenv-host"
    finally:
        monkeypatch.delenv("BEANSTALK_HOST", raising=False)


@pytest.mark.asyncio
async def test_run_command_put_switches_tube(client, server):
    server.reply(b"USING emails\r\n", b"INSERTED 3\r\n", b"USING default\r\n")
    args = cli.build_parser().parse_args(["put", "hello", "--tube", "emails"])

    assert await cli.run_command(client, args) == {"id": 3}
    assert server.sent[1] == b"put 60 0 30 5\r\nhello\r\n"
    assert client.state.tubes.using == "default"


@pytest.mark.asyncio
async def test_run_command_put_fails_when_tube_switch_rejected(client, server):
    server.reply(b"BAD_FORMAT\r\n")
    args = cli.build_parser().parse_args(["put", "hello", "--tube", "emails"])

    assert await cli.run_command(client, args) is None
    assert server.sent == [b"use emails\r\n"]
    assert client.take_error().status == "BAD_FORMAT"


@pytest.mark.asyncio
async def test_run_command_peek_ready(client, server):
    server.reply(b"FOUND 4 3\r\nabc\r\n")
    args = cli.build_parser().parse_args(["peek-ready"])

    assert await cli.run_command(client, args) == {"id": 4, "body": "abc"}


def test_main_success(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(StubClient, "stats_result", {"current-jobs-ready": 2})
    monkeypatch.setattr(cli, "BeanstalkClient", StubClient)

    assert cli.main(["--host", "127.0.0.1", "stats"]) == 0
    assert json.loads(capsys.readouterr().out) == {"current-jobs-ready": 2}


def test_main_failure_prints_last_error(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(cli, "BeanstalkClient", StubClient)

    assert cli.main(["--host", "127.0.0.1", "stats"]) == 1
    assert "NOT_FOUND" in capsys.readouterr().err


def test_main_config_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cli.main(["-c", str(tmp_path / "missing.toml"), "stats"]) == 1
