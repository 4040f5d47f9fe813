from __future__ import annotations

import json
from typing import NoReturn, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from folio_core.actors import Actor, Role
from folio_core.db.base import Base
from folio_core.db.session import get_engine
from folio_core.errors import FolioError
from folio_core.logging_config import configure_logging
from folio_core.persistence import SqlPersistence
from folio_core.settings import settings as core_settings

from content_service.articles import ArticleStore
from content_service.settings_store import SettingsKey, SettingsStore
from content_service.topics import TopicStore

app = typer.Typer(help="Folio content store (schema, topics, revisions, settings).")
settings_app = typer.Typer(help="Show or change site settings.")
app.add_typer(settings_app, name="settings")

console = Console()


def _actor(actor_id: Optional[str], role: Optional[Role]) -> Actor | None:
    if actor_id is None:
        return None
    return Actor.of(actor_id, *([role] if role else []))


def _fail(exc: FolioError) -> NoReturn:
    console.print(f"[red]{exc.kind.value}: {exc.message}[/red]")
    raise typer.Exit(code=1)


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in {"true", "on", "yes", "1"}:
        return True
    if value in {"false", "off", "no", "0"}:
        return False
    raise typer.BadParameter(f"expected true or false, got {raw!r}")


@app.callback()
def main_callback(
    log_level: str = typer.Option(core_settings.log_level, help="Log level (DEBUG, INFO, WARNING...)."),
) -> None:
    configure_logging(level=log_level)


@app.command("init-db")
def init_db(
    database_url: Optional[str] = typer.Option(None, help="Override FOLIO_DATABASE_URL."),
) -> None:
    """Create all tables on the configured database (development convenience; use alembic in prod)."""
    engine = get_engine(database_url)
    Base.metadata.create_all(engine)
    console.print(f"[green]✓ Schema ready[/green] {engine.url.render_as_string(hide_password=True)}")


@app.command("seed-topics")
def seed_topics(
    actor_id: str = typer.Option(..., help="Admin id recorded as the topic creator."),
) -> None:
    """Ensure the Uncategorized topic exists and assign topicless articles to it."""
    with SqlPersistence.open() as db:
        store = TopicStore(db)
        try:
            topic, created, assigned = store.ensure_default_topic(Actor.of(actor_id, Role.admin))
        except FolioError as exc:
            _fail(exc)
    state = "created" if created else "already exists"
    console.print(f"[green]✓ Uncategorized topic {state}[/green] ({topic.id})")
    console.print(f"  Articles assigned: {assigned}")


@app.command("topics")
def topics(
    actor_id: Optional[str] = typer.Option(None, help="Reading actor id (omit to read as guest)."),
    role: Optional[Role] = typer.Option(None, help="Role of the reading actor."),
) -> None:
    """Print the live topic hierarchy with published article counts."""
    with SqlPersistence.open() as db:
        store = TopicStore(db)
        try:
            summaries = store.list_topics(_actor(actor_id, role))
        except FolioError as exc:
            _fail(exc)

    root = Tree("[bold]Topics[/bold]")
    nodes = {}
    # Parents always sort before children by depth.
    for summary in sorted(summaries, key=lambda s: (len(s.topic.ancestors), s.topic.name)):
        parent = nodes.get(summary.topic.parent_id, root)
        label = f"{escape(summary.topic.name)} [dim]({summary.article_count}) {summary.topic.id}[/dim]"
        nodes[summary.topic.id] = parent.add(label)
    console.print(root)


@app.command("revisions")
def revisions(
    article_id: str,
    actor_id: Optional[str] = typer.Option(None, help="Reading actor id (omit to read as guest)."),
    role: Optional[Role] = typer.Option(None, help="Role of the reading actor."),
) -> None:
    """List the revision history of an article, oldest first."""
    with SqlPersistence.open() as db:
        store = ArticleStore(db)
        try:
            article = store.get(article_id, _actor(actor_id, role))
            history = store.get_revisions(article_id, _actor(actor_id, role))
        except FolioError as exc:
            _fail(exc)

    table = Table(title=f"{article.title} (v{article.version}, {article.state.value})")
    table.add_column("Version", justify="right")
    table.add_column("Title")
    table.add_column("Superseded at")
    table.add_column("By")
    for rev in history:
        table.add_row(str(rev.version), rev.title, rev.updated_at.isoformat(), rev.updated_by)
    console.print(table)


@settings_app.command("show")
def settings_show() -> None:
    with SqlPersistence.open() as db:
        values = SettingsStore(db).all_settings()
    console.print_json(json.dumps(values))


@settings_app.command("set")
def settings_set(
    key: SettingsKey = typer.Argument(..., help="Setting to change."),
    value: str = typer.Argument(..., help="New value (true/false)."),
    actor_id: str = typer.Option(..., help="Admin id performing the change."),
) -> None:
    flag = _parse_bool(value)
    with SqlPersistence.open() as db:
        store = SettingsStore(db)
        flags = {
            SettingsKey.guest_access_enabled: "guest_access_enabled",
            SettingsKey.require_email_verification: "require_email_verification",
        }
        try:
            values = store.update(Actor.of(actor_id, Role.admin), **{flags[key]: flag})
        except FolioError as exc:
            _fail(exc)
    console.print(f"[green]✓ {key.value} = {str(flag).lower()}[/green]")
    console.print_json(json.dumps(values))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
