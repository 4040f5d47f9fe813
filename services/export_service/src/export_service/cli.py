from __future__ import annotations

from pathlib import Path
from typing import NoReturn, Optional

import typer
from rich.console import Console

from folio_core.actors import Actor, Role
from folio_core.errors import FolioError
from folio_core.logging_config import configure_logging
from folio_core.persistence import SqlPersistence
from folio_core.settings import settings as core_settings

from content_service.articles import ArticleStore
from export_service.assets import LocalAssetStore
from export_service.presets import BACKGROUND_PRESETS, DOC_WIDTH_PRESETS, FONT_PRESETS, ReaderPreferences
from export_service.render import render_article

app = typer.Typer(help="Export articles as standalone HTML documents.")

console = Console()


def _fail(exc: FolioError) -> NoReturn:
    console.print(f"[red]{exc.kind.value}: {exc.message}[/red]")
    raise typer.Exit(code=1)


@app.callback()
def main_callback(
    log_level: str = typer.Option(core_settings.log_level, help="Log level (DEBUG, INFO, WARNING...)."),
) -> None:
    configure_logging(level=log_level)


@app.command()
def render(
    article_id: str,
    *,
    actor_id: str = typer.Option(..., help="Exporting actor id (must be the author or an admin)."),
    role: Optional[Role] = typer.Option(None, help="Role of the exporting actor."),
    background: Optional[str] = typer.Option(None, help=f"One of: {', '.join(BACKGROUND_PRESETS)}."),
    font: Optional[str] = typer.Option(None, help=f"One of: {', '.join(FONT_PRESETS)}."),
    font_size: Optional[str] = typer.Option(None, help="CSS size, e.g. 18px or 1.1rem."),
    line_height: Optional[float] = typer.Option(None, help="Unitless line height, e.g. 1.6."),
    width: Optional[str] = typer.Option(None, help=f"One of: {', '.join(DOC_WIDTH_PRESETS)}."),
    uploads_dir: Path = typer.Option(core_settings.uploads_dir, help="Directory holding uploaded images."),
    out: Optional[Path] = typer.Option(None, help="Output file or directory (default: ./<slug>.html)."),
) -> None:
    """Render one article to a self-contained HTML file."""
    actor = Actor.of(actor_id, *([role] if role else []))
    prefs = ReaderPreferences(
        background_id=background,
        font_id=font,
        font_size=font_size,
        line_height=line_height,
        doc_width_id=width,
    )

    with SqlPersistence.open() as db:
        try:
            article = ArticleStore(db).get_for_export(article_id, actor)
            export = render_article(article, preferences=prefs, assets=LocalAssetStore(uploads_dir))
        except FolioError as exc:
            _fail(exc)

    target = out or Path(export.filename)
    if target.is_dir():
        target = target / export.filename
    target.write_text(export.document, encoding="utf-8")
    console.print(f"[green]✓ Exported[/green] {target}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
