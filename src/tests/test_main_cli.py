"""Tests for the bom-tracker command line."""

import pytest

from src import main as cli
from src.services import production_service


@pytest.fixture(autouse=True)
def no_app_database(monkeypatch):
    """Keep the CLI on the test database."""
    from src.utils import config as config_module

    monkeypatch.setenv(config_module.ENV_VAR_DATABASE_URL, "sqlite:///:memory:")
    config_module.reset_config()
    monkeypatch.setattr(cli, "initialize_app_database", lambda: None)
    yield
    config_module.reset_config()


class TestCommands:
    """Tests for individual commands."""

    def test_cost(self, bom_setup, capsys):
        """cost prints the breakdown, total and margin."""
        assert cli.main(["cost", str(bom_setup["product"])]) == 0

        out = capsys.readouterr().out
        assert "Total cost:    10.00" in out
        assert "Margin:        50.00%" in out

    def test_optimize_without_savings(self, bom_setup, capsys):
        """optimize reports when no supplier change helps."""
        assert cli.main(["optimize", str(bom_setup["product"])]) == 0
        assert "Already using the cheapest suppliers" in capsys.readouterr().out

    def test_produce_and_set_status(self, bom_setup, capsys):
        """produce creates a pending run; set-status completes it."""
        assert cli.main(["produce", str(bom_setup["product"]), "2", "--notes", "shift A"]) == 0
        run = production_service.list_production_runs()[0]
        assert run["notes"] == "shift A"

        assert cli.main(["set-status", str(run["id"]), "completed"]) == 0
        assert "[completed]" in capsys.readouterr().out

    def test_produce_insufficient_stock(self, bom_setup, capsys):
        """A short material is reported on stderr with exit code 1."""
        assert cli.main(["produce", str(bom_setup["product"]), "2"]) == 0
        assert cli.main(["produce", str(bom_setup["product"]), "1"]) == 1

        err = capsys.readouterr().err
        assert "Insufficient stock" in err
        assert "A: required 4" in err

    def test_invalid_status(self, bom_setup, capsys):
        """Unknown status values exit with 1."""
        run = production_service.create_production_run(bom_setup["product"], 1)

        assert cli.main(["set-status", str(run["id"]), "shipped"]) == 1
        assert "Invalid production status" in capsys.readouterr().err

    def test_runs_and_low_stock(self, test_db, capsys):
        """Listing commands succeed on an empty database."""
        assert cli.main(["runs", "--status", "pending"]) == 0
        assert cli.main(["low-stock"]) == 0

        out = capsys.readouterr().out
        assert "No production runs" in out
        assert "All materials are at or above their minimum stock" in out

    def test_no_command(self, capsys):
        """Without a command the help text is shown."""
        assert cli.main([]) == 1
        assert "usage" in capsys.readouterr().out.lower()
