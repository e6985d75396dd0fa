"""Tests for YAML configuration loading."""

import logging

import pytest

from codeprobe.core.config import (
    CONFIG_DIR_ENV,
    AnalysisConfig,
    CodeProbeConfig,
    get_config_path,
    load_config,
)
from codeprobe.core.structure import ConfigError, ExtractionOptions


VALID_CONFIG = '''
extraction:
  verbose: true
analysis:
  max_source_chars: 5000
  complexity_threshold: 3
'''


def _write(tmp_path, text, name="codeprobe.yaml"):
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(tmp_path / "absent.yaml")

        assert config == CodeProbeConfig()
        assert "not found" in caplog.text

    def test_valid_file(self, tmp_path):
        config = load_config(_write(tmp_path, VALID_CONFIG))

        assert config.extraction == ExtractionOptions(verbose=True)
        assert config.analysis == AnalysisConfig(
            max_source_chars=5000,
            include_metrics=True,
            complexity_threshold=3,
        )

    def test_empty_file_gives_defaults(self, tmp_path):
        assert load_config(_write(tmp_path, "")) == CodeProbeConfig()

    def test_missing_section_gives_defaults(self, tmp_path):
        config = load_config(_write(tmp_path, "analysis:\n  include_metrics: false\n"))

        assert config.extraction == ExtractionOptions()
        assert config.analysis.include_metrics is False

    def test_unknown_keys_are_ignored(self, tmp_path, caplog):
        with caplog.at_level(logging.WARNING):
            config = load_config(_write(tmp_path, "analysis:\n  colour: blue\n"))

        assert config.analysis == AnalysisConfig()
        assert "analysis.colour" in caplog.text

    @pytest.mark.parametrize(
        "text",
        [
            "analysis: [unclosed\n",
            "- just\n- a list\n",
            "analysis: 7\n",
            "analysis:\n  max_source_chars: -5\n",
            "analysis:\n  max_source_chars: true\n",
            "extraction:\n  verbose: 'yes'\n",
        ],
    )
    def test_invalid_files_raise(self, tmp_path, text):
        with pytest.raises(ConfigError):
            load_config(_write(tmp_path, text))


class TestConfigPath:
    def test_env_override(self, tmp_path, monkeypatch):
        monkeypatch.setenv(CONFIG_DIR_ENV, str(tmp_path))
        _write(tmp_path, "extraction:\n  verbose: true\n")

        assert get_config_path() == tmp_path / "codeprobe.yaml"
        assert load_config().extraction.verbose is True

    def test_bundled_config_loads(self, monkeypatch):
        monkeypatch.delenv(CONFIG_DIR_ENV, raising=False)

        assert get_config_path().parent.name == "config"
        assert load_config() == CodeProbeConfig()
