"""
Tests for configuration loading

Author: termdeck contributors | 2026-10-19
"""

import pytest

from termdeck.config import TermdeckConfig, find_config_file, load_config


class TestDefaults:

    def test_defaults(self, tmp_path, clean_environment):
        config = load_config(tmp_path / "absent.yaml")

        assert config.render.min_width == 20
        assert config.render.color is True
        assert config.evaluator.backend == "repl"
        assert config.evaluator.timeout == 10.0
        assert config.logging.level == "WARNING"

    def test_to_dict(self):
        data = TermdeckConfig().to_dict()

        assert set(data) == {"render", "evaluator", "logging"}
        assert data["evaluator"]["command"] == []


class TestYamlLoading:

    def test_sections(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text(
            "render:\n"
            "  min_width: 30\n"
            "  color: false\n"
            "evaluator:\n"
            "  backend: http\n"
            "  url: http://localhost:8800/eval\n"
            "  timeout: 2.5\n"
            "logging:\n"
            "  level: DEBUG\n"
            "  eval_log: false\n",
            encoding="utf-8",
        )

        config = load_config(path)
        assert config.render.min_width == 30
        assert config.render.color is False
        assert config.render.code_margin == 4
        assert config.evaluator.backend == "http"
        assert config.evaluator.url == "http://localhost:8800/eval"
        assert config.evaluator.timeout == 2.5
        assert config.logging.level == "DEBUG"
        assert config.logging.eval_log is False

    def test_command_string_split(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text("evaluator:\n  command: python3 -u driver.py\n", encoding="utf-8")

        assert load_config(path).evaluator.command == ["python3", "-u", "driver.py"]

    def test_malformed_yaml_uses_defaults(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text("render: [unclosed\n", encoding="utf-8")

        config = load_config(path)
        assert config.render.min_width == 20

    def test_wrong_shape_uses_defaults(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text("render: 12\n", encoding="utf-8")

        assert load_config(path).render.min_width == 20

    def test_empty_file(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text("", encoding="utf-8")

        assert load_config(path).evaluator.backend == "repl"


class TestEnvironmentOverrides:

    def test_overrides(self, tmp_path, clean_environment, monkeypatch):
        monkeypatch.setenv("TERMDECK_EVALUATOR", "none")
        monkeypatch.setenv("TERMDECK_EVAL_TIMEOUT", "4")
        monkeypatch.setenv("TERMDECK_EVAL_URL", "http://eval")
        monkeypatch.setenv("TERMDECK_LOG_LEVEL", "info")

        config = load_config(tmp_path / "absent.yaml")
        assert config.evaluator.backend == "none"
        assert config.evaluator.timeout == 4.0
        assert config.evaluator.url == "http://eval"
        assert config.logging.level == "INFO"

    def test_no_color(self, tmp_path, clean_environment, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "1")

        assert load_config(tmp_path / "absent.yaml").render.color is False

    def test_invalid_timeout_ignored(self, tmp_path, clean_environment, monkeypatch):
        monkeypatch.setenv("TERMDECK_EVAL_TIMEOUT", "soon")

        assert load_config(tmp_path / "absent.yaml").evaluator.timeout == 10.0


class TestValidation:

    @pytest.mark.parametrize("yaml_text", [
        "evaluator:\n  backend: jupyter\n",
        "evaluator:\n  timeout: 0\n",
        "evaluator:\n  timeout: -1\n",
        "render:\n  min_width: 5\n",
        "render:\n  code_margin: -2\n",
    ])
    def test_invalid_values(self, tmp_path, clean_environment, yaml_text):
        path = tmp_path / "termdeck.yaml"
        path.write_text(yaml_text, encoding="utf-8")

        with pytest.raises(ValueError):
            load_config(path)

    def test_unknown_log_level_falls_back(self, tmp_path, clean_environment):
        path = tmp_path / "termdeck.yaml"
        path.write_text("logging:\n  level: LOUD\n", encoding="utf-8")

        assert load_config(path).logging.level == "WARNING"


class TestFindConfigFile:

    def test_found_in_parent(self, tmp_path):
        (tmp_path / "termdeck.yaml").write_text("{}\n", encoding="utf-8")
        nested = tmp_path / "talks" / "2026"
        nested.mkdir(parents=True)

        assert find_config_file(nested) == (tmp_path / "termdeck.yaml").resolve()

    def test_hidden_directory(self, tmp_path):
        hidden = tmp_path / ".termdeck"
        hidden.mkdir()
        (hidden / "termdeck.yaml").write_text("{}\n", encoding="utf-8")

        assert find_config_file(tmp_path) == (hidden / "termdeck.yaml").resolve()

    def test_not_found(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path))
        start = tmp_path / "a" / "b" / "c" / "d" / "e" / "f" / "g" / "h" / "i" / "j" / "k"
        start.mkdir(parents=True)

        assert find_config_file(start) is None
