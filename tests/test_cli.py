"""Smoke tests for the CLI."""

from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

import markflow.config as config_module
from markflow import __version__
from markflow.cli import app

ARTICLE = """---
title: "Hello markflow"
author: Ann
tags: python
---
# Ignored

Read [the docs](https://docs.example.com) and $x^2$.

![pic](https://img.example.com/p.png)
"""


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI test runner."""
    return CliRunner()


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """A working directory with an article and no ambient config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(config_module, "GLOBAL_CONFIG", tmp_path / "no-global.toml")
    for var in ("MARKFLOW_DEFAULT_PLATFORM", "MARKFLOW_OUTPUT_DIR", "MARKFLOW_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    (tmp_path / "article.md").write_text(ARTICLE, encoding="utf-8")
    return tmp_path


class TestCLI:
    def test_main_help(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "process" in result.output
        assert "validate" in result.output

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"markflow {__version__}" in result.output


class TestProcessCommand:
    def test_writes_both_platforms(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["process", "article.md", "--output", str(workspace / "out")])
        assert result.exit_code == 0, result.output
        wechat = workspace / "out" / "wechat" / "Hello markflow_wechat.html"
        zhihu = workspace / "out" / "zhihu" / "Hello markflow_zhihu.html"
        assert "the docs[1]" in wechat.read_text(encoding="utf-8")
        assert 'data-tex="x^2"' in zhihu.read_text(encoding="utf-8")

    def test_single_platform(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["process", "article.md", "-p", "zhihu", "-o", "out"])
        assert result.exit_code == 0, result.output
        assert (workspace / "out" / "zhihu").is_dir()
        assert not (workspace / "out" / "wechat").exists()

    def test_preview(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["process", "article.md", "--platform", "wechat", "--preview"])
        assert result.exit_code == 0, result.output
        assert "the docs[1]" in result.output
        assert not (workspace / "output").exists()

    def test_standalone(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(
            app, ["process", "article.md", "-p", "zhihu", "--preview", "--standalone"]
        )
        assert result.exit_code == 0, result.output
        assert "<!DOCTYPE html>" in result.output
        assert ".ztext-image" in result.output

    def test_config_file(self, runner: CliRunner, workspace: Path) -> None:
        config = workspace / "markflow.toml"
        config.write_text(
            '[zhihu]\nenable_math = false\n\n[output]\ncreate_subdirs = false\n'
            'filename_pattern = "{platform}.html"\n',
            encoding="utf-8",
        )
        result = runner.invoke(
            app, ["process", "article.md", "-p", "zhihu", "-o", "out", "--config", str(config)]
        )
        assert result.exit_code == 0, result.output
        assert "$x^2$" in (workspace / "out" / "zhihu.html").read_text(encoding="utf-8")

    def test_validation_failure(self, runner: CliRunner, workspace: Path) -> None:
        (workspace / "long.md").write_text(f"# {'t' * 65}\n", encoding="utf-8")
        result = runner.invoke(app, ["process", "long.md", "-p", "wechat", "--preview"])
        assert result.exit_code == 1
        assert "validation failed" in result.output

    def test_skip_validation(self, runner: CliRunner, workspace: Path) -> None:
        (workspace / "long.md").write_text(f"# {'t' * 65}\n", encoding="utf-8")
        result = runner.invoke(
            app, ["process", "long.md", "-p", "wechat", "--preview", "--skip-validation"]
        )
        assert result.exit_code == 0, result.output

    def test_unknown_platform(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["process", "article.md", "-p", "medium"])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_missing_input(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["process", "missing.md"])
        assert result.exit_code != 0


class TestInspectCommand:
    def test_yaml_summary(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["inspect", "article.md"])
        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        assert data["title"] == "Hello markflow"
        assert data["metadata"]["author"] == "Ann"
        assert data["metadata"]["tags"] == ["python"]
        assert data["images"] == ["https://img.example.com/p.png"]
        assert data["links"] == ["https://docs.example.com"]

    def test_config_author_applied(self, runner: CliRunner, workspace: Path) -> None:
        (workspace / "plain.md").write_text("# Plain\n\nbody\n", encoding="utf-8")
        config = workspace / "markflow.toml"
        config.write_text('[general]\nauthor = "Config Author"\n', encoding="utf-8")
        result = runner.invoke(app, ["inspect", "plain.md", "--config", str(config)])
        assert result.exit_code == 0, result.output
        assert yaml.safe_load(result.output)["metadata"]["author"] == "Config Author"


class TestValidateCommand:
    def test_clean_document(self, runner: CliRunner, workspace: Path) -> None:
        result = runner.invoke(app, ["validate", "article.md"])
        assert result.exit_code == 0, result.output

    def test_errors_exit_nonzero(self, runner: CliRunner, workspace: Path) -> None:
        (workspace / "long.md").write_text(f"# {'t' * 65}\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", "long.md"])
        assert result.exit_code == 1
        assert "wechat" in result.output
        assert "error" in result.output

    def test_bad_log_level_is_clean_error(
        self, runner: CliRunner, workspace: Path, monkeypatch
    ) -> None:
        monkeypatch.setenv("MARKFLOW_LOG_LEVEL", "verbose")
        result = runner.invoke(app, ["validate", "article.md"])
        assert result.exit_code == 1
        assert "log level" in result.output

    def test_warnings_only(self, runner: CliRunner, workspace: Path) -> None:
        (workspace / "ad.md").write_text("# Title\n\n广告\n", encoding="utf-8")
        result = runner.invoke(app, ["validate", "ad.md", "-p", "zhihu"])
        assert result.exit_code == 0, result.output
        assert "warning" in result.output
