import pytest
from typer.testing import CliRunner

from folio_core.db.session import get_engine
from folio_core.identity import new_entity_id
from folio_core.settings import settings

from content_service import cli


@pytest.fixture
def runner(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'folio.db'}")
    monkeypatch.setattr(cli, "configure_logging", lambda **kwargs: None)
    get_engine.cache_clear()
    yield CliRunner()
    get_engine.cache_clear()


def test_init_seed_and_settings(runner):
    admin_id = new_entity_id()

    assert runner.invoke(cli.app, ["init-db"]).exit_code == 0

    seeded = runner.invoke(cli.app, ["seed-topics", "--actor-id", admin_id])
    assert seeded.exit_code == 0, seeded.output
    assert "Uncategorized topic created" in seeded.output

    listed = runner.invoke(cli.app, ["topics"])
    assert listed.exit_code == 0, listed.output
    assert "Uncategorized" in listed.output

    changed = runner.invoke(cli.app, ["settings", "set", "guestAccessEnabled", "false", "--actor-id", admin_id])
    assert changed.exit_code == 0, changed.output

    shown = runner.invoke(cli.app, ["settings", "show"])
    assert '"guestAccessEnabled": false' in shown.output

    denied = runner.invoke(cli.app, ["topics"])
    assert denied.exit_code == 1
    assert "FORBIDDEN" in denied.output
