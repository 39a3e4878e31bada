"""Display and formatting utilities for transformation runs."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .render import build_source_set, mime_type

__all__ = [
    "TABLE_WIDTH",
    "console",
    "display_config",
    "display_matches",
    "display_results",
    "format_sources",
    "make_kv_table",
    "make_table",
]

if TYPE_CHECKING:
    from pathlib import Path

    from .config import PictureConfig
    from .pipeline import DocumentResult
    from .probe import ExistsProbe
    from .render import SourceSet
    from .scanner import MatchResult

console = Console()

TABLE_WIDTH = 100


def make_table(title: str | None = None, **kwargs: Any) -> Table:
    """Create a table with standard width and styling."""
    return Table(title=title, show_header=True, width=TABLE_WIDTH, **kwargs)


def make_kv_table(title: str) -> Table:
    """Create a key-value table (Setting | Value)."""
    table = make_table(title)
    table.add_column("Setting", style="cyan", ratio=1)
    table.add_column("Value", style="green", ratio=2, overflow="fold")
    return table


def format_sources(sources: SourceSet) -> str:
    """One line per <source>: media type and srcset entries."""
    lines = [f"{mime_type(key)}: {escape(', '.join(entries))}" for key, entries in sources.items() if entries]
    return "\n".join(lines) if lines else "[dim]no variants found[/dim]"


def display_config(config: PictureConfig) -> None:
    """Show the resolved settings."""
    table = make_kv_table("Settings")
    table.add_row("Extensions", ", ".join(sorted(config.extensions)) or "[dim]none[/dim]")
    retina = ", ".join(f"{v.scale}x={v.suffix or '(none)'}" for v in config.retina)
    table.add_row("Retina", escape(retina) if retina else "[dim]disabled[/dim]")
    table.add_row("WebP", "[green]enabled[/green]" if config.add_webp else "[yellow]disabled[/yellow]")
    table.add_row("Check Exists", f"yes ({config.public_path})" if config.check_exists else "no")
    table.add_row("Noscript Fallback", "yes" if config.noscript_fallback else "no")
    console.print(table)
    console.print()


def display_matches(
    document: Path, matches: list[tuple[int, MatchResult]], config: PictureConfig, exists: ExistsProbe
) -> None:
    """Show the <img> tags of one document and the sources they would get."""
    if not matches:
        console.print(f"[dim]{document}: no images to convert[/dim]")
        return

    table = make_table(str(document))
    table.add_column("Line", style="dim", justify="right", width=6)
    table.add_column("Image", style="cyan", ratio=2, overflow="fold")
    table.add_column("Sources", style="green", ratio=3, overflow="fold")

    for index, match in matches:
        image = escape(match.main.path)
        if match.fallback:
            image += f"\n[dim]fallback: {escape(match.fallback.path)}[/dim]"
        sources = format_sources(build_source_set(match.main, config, exists))
        table.add_row(str(index + 1), image, sources)

    console.print(table)
    console.print()


def display_results(results: list[DocumentResult], failures: list[tuple[Path, str]], *, dry_run: bool = False) -> None:
    """Summarise a convert run."""
    table = make_table("Dry Run" if dry_run else "Converted Documents")
    table.add_column("Document", style="cyan", ratio=3, overflow="fold")
    table.add_column("Images", justify="right", ratio=1)
    table.add_column("Status", ratio=2)

    for result in results:
        if not result.changed:
            status = "[dim]unchanged[/dim]"
        elif dry_run:
            status = "[yellow]would update[/yellow]"
        else:
            status = f"[green]✓ written[/green] [dim]{result.destination}[/dim]"
        table.add_row(str(result.source), str(result.converted), status)

    for document, error in failures:
        table.add_row(str(document), "-", f"[red]✗ {escape(error)}[/red]")

    console.print(table)

    total = sum(result.converted for result in results)
    color = "red" if failures else "green"
    console.print(
        f"[{color}]{total} image(s) in {len(results)} document(s), {len(failures)} failed[/{color}]",
    )
