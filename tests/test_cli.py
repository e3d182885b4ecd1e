"""Tests for the command line interface."""

from rich.console import Console
from typer.testing import CliRunner

from profilecrawl import __version__
from profilecrawl.cli.commands import crawl
from profilecrawl.cli.main import app
from profilecrawl.core.config import load_app_config
from profilecrawl.core.orchestrator import BatchStats

runner = CliRunner()


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_init_writes_a_loadable_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("SCRAPEOPS_API_KEY", raising=False)

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 0
    assert (tmp_path / "data").is_dir()
    assert (tmp_path / "logs").is_dir()
    config = load_app_config(tmp_path / "configs" / "app.yaml")
    assert config.crawl.keywords == ["bill gates", "elon musk"]
    assert config.proxy.api_key is None


def test_init_refuses_to_overwrite(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert runner.invoke(app, ["init"]).exit_code == 0

    result = runner.invoke(app, ["init"])

    assert result.exit_code == 1
    assert runner.invoke(app, ["init", "--force"]).exit_code == 0


def test_enrich_rejects_missing_files(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, [
        "crawl", "enrich", str(tmp_path / "missing.csv"),
        "--output-dir", str(tmp_path / "data"),
    ])

    assert result.exit_code == 1


def test_invalid_config_exits_with_error(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    bad = tmp_path / "bad.yaml"
    bad.write_text("crawl:\n  batch_size: 0\n", encoding="utf-8")

    result = runner.invoke(app, ["crawl", "discover", "--config", str(bad)])

    assert result.exit_code == 1


def test_summary_prints_error_text_literally(monkeypatch):
    recorded = Console(record=True, width=200, color_system=None)
    monkeypatch.setattr(crawl, "console", recorded)
    stats = BatchStats(units_total=1, failed=1, errors=["bill gates: bad tag [/red] in [bold]page"])

    crawl._show_summary([("discovery", stats)])

    assert "bill gates: bad tag [/red] in [bold]page" in recorded.export_text()
