"""Tests for MOLRW_* environment settings."""

import pytest

from molrw.config import load_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("MOLRW_LOG_LEVEL", "MOLRW_ENCODING", "MOLRW_ENCODING_ERRORS", "MOLRW_STRICT", "MOLRW_DEFAULT_FORMAT"):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = load_settings()
    assert settings.log_level == "INFO"
    assert settings.encoding == "utf-8"
    assert settings.encoding_errors == "replace"
    assert settings.strict is False
    assert settings.default_format is None


def test_log_level(monkeypatch):
    monkeypatch.setenv("MOLRW_LOG_LEVEL", "debug")
    assert load_settings().log_level == "DEBUG"


def test_invalid_log_level_falls_back(monkeypatch):
    monkeypatch.setenv("MOLRW_LOG_LEVEL", "chatty")
    assert load_settings().log_level == "INFO"


@pytest.mark.parametrize("value, expected", [("true", True), ("1", True), ("YES", True), ("no", False), ("", False)])
def test_strict_flag(monkeypatch, value, expected):
    monkeypatch.setenv("MOLRW_STRICT", value)
    assert load_settings().strict is expected


def test_encoding(monkeypatch):
    monkeypatch.setenv("MOLRW_ENCODING", "latin-1")
    monkeypatch.setenv("MOLRW_ENCODING_ERRORS", "strict")
    settings = load_settings()
    assert (settings.encoding, settings.encoding_errors) == ("latin-1", "strict")


def test_default_format(monkeypatch):
    monkeypatch.setenv("MOLRW_DEFAULT_FORMAT", "text/xyz")
    assert load_settings().default_format == "text/xyz"
    monkeypatch.setenv("MOLRW_DEFAULT_FORMAT", "")
    assert load_settings().default_format is None
