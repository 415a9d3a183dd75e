"""Tests for the management CLI."""

import pytest

from stockledger import cli
from stockledger.config import reset_settings


@pytest.fixture
def data_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("STORAGE_DATA_DIR", str(tmp_path))
    reset_settings()
    yield tmp_path
    reset_settings()


class TestMigrateCommand:
    def test_applies_then_reports_up_to_date(self, data_dir, capsys):
        cli.main(["migrate"])
        first = capsys.readouterr().out
        assert "applied v001_inventory_ledger" in first
        assert (data_dir / "stockledger.db").exists()

        cli.main(["migrate"])
        assert "schema is up to date" in capsys.readouterr().out


class TestParser:
    def test_command_is_required(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_serve_uses_factory(self, data_dir, monkeypatch):
        calls = {}

        def fake_run(app, **kwargs):
            calls["app"] = app
            calls.update(kwargs)

        monkeypatch.setattr("uvicorn.run", fake_run)
        cli.main(["serve", "--port", "9001"])

        assert calls["app"] == "stockledger.api.main:create_app"
        assert calls["factory"] is True
        assert calls["port"] == 9001
        assert calls["host"] == "0.0.0.0"
