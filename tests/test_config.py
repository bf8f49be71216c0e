# tests/test_config.py
from pathlib import Path

import pytest

from beanstalk_core import ConfigError
from beanstalk_core.config import (
    BeanstalkConfig,
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
)


# --- Factory 测试 (核心逻辑) ---


def test_create_config_defaults():
    """测试空字典使用全部默认值"""
    config = create_config_from_dict({})

    assert config == BeanstalkConfig()
    assert config.address == "127.0.0.1:11300"
    assert config.default_priority == 60
    assert config.default_ttr == 30
    assert config.timeout is None


def test_create_config_converts_strings():
    """测试来自环境变量的字符串被正确转换"""
    config = create_config_from_dict(
        {"host": "queue.local", "port": "11301", "timeout": "2.5", "default_ttr": "60"}
    )

    assert config.host == "queue.local"
    assert config.port == 11301
    assert config.timeout == 2.5
    assert config.default_ttr == 60


@pytest.mark.parametrize("value", [-1, 0, "-1", ""])
def test_non_positive_timeout_means_never(value):
    config = create_config_from_dict({"timeout": value, "connect_timeout": value})
    assert config.timeout is None
    assert config.connect_timeout is None


@pytest.mark.parametrize(
    "raw, match",
    [
        ({"port": "abc"}, "整数格式无效"),
        ({"port": 0}, "取值超出范围"),
        ({"port": 70000}, "取值超出范围"),
        ({"timeout": "soon"}, "超时格式无效"),
        ({"default_ttr": 0}, "取值超出范围"),
        ({"host": "  "}, "不能为空"),
    ],
)
def test_create_config_invalid(raw, match):
    with pytest.raises(ConfigError, match=match):
        create_config_from_dict(raw)


# --- Loader 测试 (I/O) ---


def test_load_toml_section(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('[beanstalk]\nhost = "10.0.0.5"\nport = 11400\n', encoding="utf-8")

    config = load_config_from_toml(f)
    assert config.host == "10.0.0.5"
    assert config.port == 11400


def test_load_toml_profile(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text(
        '[profile.default]\nhost = "a"\n\n[profile.prod]\nhost = "b"\ntimeout = 5\n',
        encoding="utf-8",
    )

    assert load_config_from_toml(f).host == "a"
    prod = load_config_from_toml(f, profile="prod")
    assert prod.host == "b"
    assert prod.timeout == 5.0

    with pytest.raises(ConfigError, match="未找到预设"):
        load_config_from_toml(f, profile="staging")


def test_load_toml_root(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text("port = 12000\n", encoding="utf-8")
    assert load_config_from_toml(f).port == 12000


def test_load_toml_not_found():
    """测试文件不存在"""
    with pytest.raises(ConfigError, match="配置文件未找到"):
        load_config_from_toml(Path("non_existent.toml"))


def test_load_toml_invalid(tmp_path):
    f = tmp_path / "broken.toml"
    f.write_text("host = \n", encoding="utf-8")
    with pytest.raises(ConfigError, match="读取 TOML 失败"):
        load_config_from_toml(f)


def test_load_env(monkeypatch):
    monkeypatch.setenv("BEANSTALK_HOST", "env-host")
    monkeypatch.setenv("BEANSTALK_PORT", "11500")
    monkeypatch.setenv("BEANSTALK_DEFAULT_PRIORITY", "1024")

    config = load_config_from_env()
    assert config.host == "env-host"
    assert config.port == 11500
    assert config.default_priority == 1024


def test_load_env_missing(monkeypatch):
    for key in ("HOST", "PORT", "CONNECT_TIMEOUT", "TIMEOUT"):
        monkeypatch.delenv(f"BEANSTALK_{key}", raising=False)
    for key in ("DEFAULT_PRIORITY", "DEFAULT_DELAY", "DEFAULT_TTR"):
        monkeypatch.delenv(f"BEANSTALK_{key}", raising=False)

    with pytest.raises(ConfigError, match="BEANSTALK_"):
        load_config_from_env()
