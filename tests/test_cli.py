from typer.testing import CliRunner

from newsdesk.cli.app import app
from newsdesk.config import load_feeds

runner = CliRunner()


def test_feeds_commands_use_config_option(tmp_path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    config_path = tmp_path / "site" / "config.yaml"

    added = runner.invoke(
        app,
        ["feeds", "add", "--config", str(config_path), "--name", "KRQE News", "--url", "https://feeds.test/krqe"],
    )
    assert added.exit_code == 0, added.output

    feeds = load_feeds(tmp_path / "site" / "feeds.yaml")
    assert [f.name for f in feeds] == ["KRQE News"]
    assert not (tmp_path / "home" / ".config" / "newsdesk" / "feeds.yaml").exists()

    listed = runner.invoke(app, ["feeds", "list", "--config", str(config_path)])
    assert listed.exit_code == 0, listed.output

    removed = runner.invoke(app, ["feeds", "remove", "KRQE News", "--config", str(config_path)])
    assert removed.exit_code == 0, removed.output
    assert load_feeds(tmp_path / "site" / "feeds.yaml") == []


def test_feeds_list_without_feeds_file_exits(tmp_path):
    result = runner.invoke(app, ["feeds", "list", "--config", str(tmp_path / "config.yaml")])

    assert result.exit_code == 1
