# tests/test_config.py
"""Test configuration loading and validation"""

import logging

import pytest

from lyrics_aggregator.core.config import (
    DEFAULT_SOURCES,
    Config,
    load_config,
)
from lyrics_aggregator.core.exceptions import ConfigError


def _write(temp_dir, content):
    path = temp_dir / "config.yaml"
    path.write_text(content, encoding="utf-8")
    return path


class TestLoadConfig:
    """Test config.yaml loading"""

    def test_defaults_without_file(self, temp_dir, monkeypatch):
        """Test that a missing config.yaml in the working directory means defaults"""
        monkeypatch.chdir(temp_dir)
        config = load_config()
        assert config == Config()
        assert config.matching.confidence_threshold == 0.70
        assert config.lyrics.sources == DEFAULT_SOURCES

    def test_explicit_missing_file(self, temp_dir):
        """Test that an explicit path must exist"""
        with pytest.raises(ConfigError):
            load_config(temp_dir / "missing.yaml")

    def test_empty_file(self, temp_dir):
        """Test an empty file"""
        assert load_config(_write(temp_dir, "")) == Config()

    def test_full_file(self, temp_dir):
        """Test reading every section"""
        path = _write(temp_dir, (
            "matching:\n"
            "  confidence_threshold: 0.8\n"
            "  ambiguity_gap: 0.1\n"
            "lyrics:\n"
            "  sources: [Spotify, lrclib]\n"
            "  max_workers: 2\n"
            "  leading_silence: 0.02\n"
            "logging:\n"
            f"  directory: {temp_dir / 'logs'}\n"
            "  level: debug\n"
        ))

        config = load_config(path)

        assert config.matching.confidence_threshold == 0.8
        assert config.matching.ambiguity_gap == 0.1
        assert config.matching.ambiguity_ceiling == 0.9
        assert config.lyrics.sources == ("spotify", "lrclib")
        assert config.lyrics.max_workers == 2
        assert config.lyrics.leading_silence == "0.020"
        assert config.logging.directory == (temp_dir / "logs").resolve()
        assert config.logging.level == "DEBUG"
        assert config.logging.level_number == logging.DEBUG

    @pytest.mark.parametrize("content", [
        "matching: [\n",
        "- just\n- a list\n",
        "matching: 5\n",
        "matching:\n  confidence_threshold: 7\n",
        "matching:\n  ambiguity_gap: yes\n",
        "lyrics:\n  sources: []\n",
        "lyrics:\n  max_workers: 0\n",
        "lyrics:\n  leading_silence: soon\n",
        "logging:\n  level: LOUD\n",
    ])
    def test_invalid_values(self, temp_dir, content):
        """Test that invalid files raise ConfigError"""
        with pytest.raises(ConfigError):
            load_config(_write(temp_dir, content))
