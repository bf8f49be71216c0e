# tests/test_stats.py
"""
测试统计信息解码器: 键值对、列表、类型推断以及混合输入的约定行为。
"""

import pytest

from beanstalk_core.protocols.stats import coerce_value, parse_stats


def test_parse_stats_mapping_with_header_line():
    result = parse_stats("OK\r\n---\ncurrent-jobs:5\nname:default\n")

    assert result == {"current-jobs": 5, "name": "default"}
    assert isinstance(result["current-jobs"], int)
    assert isinstance(result["name"], str)


def test_parse_stats_real_body():
    body = (
        b"---\n"
        b"name: emails\n"
        b"current-jobs-ready: 12\n"
        b"rusage-utime: 0.148000\n"
        b"version: 1.12\n"
        b"hostname: worker-1\n"
    )
    result = parse_stats(body)

    assert list(result) == [
        "name",
        "current-jobs-ready",
        "rusage-utime",
        "version",
        "hostname",
    ]
    assert result["name"] == "emails"
    assert result["current-jobs-ready"] == 12
    assert result["rusage-utime"] == pytest.approx(0.148)
    assert isinstance(result["version"], float)
    assert result["hostname"] == "worker-1"


def test_parse_stats_list_preserves_order():
    result = parse_stats(b"---\n- default\n- emails\n- 2024\n")

    assert result == ["default", "emails", "2024"]


def test_parse_stats_value_keeps_later_colons():
    result = parse_stats(b"---\nbinlog-dir: /var/lib:beanstalkd\n")
    assert result == {"binlog-dir": "/var/lib:beanstalkd"}


def test_parse_stats_trims_only_one_leading_space():
    result = parse_stats(b"---\nkey:   spaced\n")
    assert result == {"key": "  spaced"}


def test_parse_stats_empty_body():
    assert parse_stats(b"---\n") == []


def test_parse_stats_mixed_lines_use_positional_keys():
    """混合输入：返回字典，列表项按出现顺序以整数为键"""
    result = parse_stats(b"---\n- alpha\nsize: 3\n- beta\n")

    assert result == {0: "alpha", "size": 3, 1: "beta"}
    assert list(result) == [0, "size", 1]


@pytest.mark.parametrize(
    "value, expected, expected_type",
    [
        ("5", 5, int),
        ("-3", -3, int),
        ("18446744073709551615", 18446744073709551615, int),
        ("2.0", 2, int),
        ("0.25", 0.25, float),
        ("1e3", 1000, int),
        ("default", "default", str),
        ("nan", "nan", str),
        ("inf", "inf", str),
        ("1_000", "1_000", str),
        ("", "", str),
    ],
)
def test_coerce_value(value, expected, expected_type):
    result = coerce_value(value)
    assert result == expected
    assert type(result) is expected_type
