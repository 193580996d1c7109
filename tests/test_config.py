"""Tests for environment-driven settings."""

from pathlib import Path

import pytest

from xoarena.config import load_settings


def test_defaults():
    settings = load_settings({})
    assert settings.port == 8000
    assert settings.stats_path is None
    assert settings.ai_think_delay == (0.3, 0.7)


def test_environment_overrides():
    settings = load_settings(
        {
            "XOARENA_PORT": "9001",
            "XOARENA_STATS_PATH": "/tmp/xo.json",
            "XOARENA_AI_DELAY_MIN": "0",
            "XOARENA_AI_DELAY_MAX": "0",
            "XOARENA_LOG_LEVEL": "debug",
        }
    )
    assert settings.port == 9001
    assert settings.stats_path == Path("/tmp/xo.json")
    assert settings.ai_think_delay == (0.0, 0.0)
    assert settings.log_level == "DEBUG"


def test_inverted_delay_rejected():
    with pytest.raises(ValueError):
        load_settings({"XOARENA_AI_DELAY_MIN": "2", "XOARENA_AI_DELAY_MAX": "1"})
