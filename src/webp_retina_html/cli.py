"""Typer-based CLI for webp-retina-html."""

from pathlib import Path
from typing import Annotated

import typer

from . import __version__
from .config import ConfigError, PictureConfig, load_config, parse_retina
from .output import console, display_config, display_matches, display_results
from .pipeline import DEFAULT_PATTERNS, DocumentResult, collect_documents, output_path, transform_file
from .probe import FilesystemProbeError, make_exists_probe
from .scanner import find_image_tags


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"webp-retina-html {__version__}")
        raise typer.Exit


app = typer.Typer(
    name="webp-retina-html",
    help="Wrap <img> tags in <picture> blocks with WebP and retina sources",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = False,
) -> None:
    """Wrap <img> tags in <picture> blocks with WebP and retina sources."""


def retina_callback(value: list[str] | None) -> list[str] | None:
    """Validate SCALE=SUFFIX retina options."""
    if value:
        try:
            parse_retina(value)
        except ConfigError as e:
            raise typer.BadParameter(str(e)) from e
    return value


# Options shared by convert and scan; unset values fall back to WEBP_RETINA_* settings
PathsArgument = Annotated[
    list[Path],
    typer.Argument(help="Documents or directories to process", exists=True),
]
ExtensionsOption = Annotated[
    list[str] | None,
    typer.Option("--ext", "-e", help="Image extension to process (repeatable, default: jpg, jpeg, png, gif)"),
]
RetinaOption = Annotated[
    list[str] | None,
    typer.Option(
        "--retina",
        "-r",
        help="Retina variant as SCALE=SUFFIX, e.g. 2=@2x (repeatable, use 1= for an explicit 1x entry)",
        callback=retina_callback,
    ),
]
PublicPathOption = Annotated[
    Path | None,
    typer.Option("--public-path", "-p", help="Directory image URLs are resolved against"),
]
CheckExistsOption = Annotated[
    bool | None,
    typer.Option("--check-exists/--no-check-exists", "-c", help="Only reference variants that exist on disk"),
]
WebpOption = Annotated[
    bool | None,
    typer.Option("--webp/--no-webp", help="Generate the webp <source>"),
]
NoscriptOption = Annotated[
    bool | None,
    typer.Option("--noscript-fallback/--no-noscript-fallback", help="Add a <noscript> image for lazy-loaded tags"),
]
PatternOption = Annotated[
    list[str] | None,
    typer.Option("--glob", "-g", help="File pattern searched in directories (repeatable, default: *.html, *.htm, *.php)"),
]


def build_config(
    extensions: list[str] | None,
    retina: list[str] | None,
    public_path: Path | None,
    check_exists: bool | None,
    webp: bool | None,
    noscript_fallback: bool | None,
) -> PictureConfig:
    """Resolve CLI flags on top of env/.env settings."""
    try:
        return load_config(
            extensions=extensions or None,
            retina=retina or None,
            public_path=public_path,
            check_exists=check_exists,
            no_webp=None if webp is None else not webp,
            noscript_fallback=noscript_fallback,
        )
    except ConfigError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def convert(
    paths: PathsArgument,
    output_dir: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write results here, mirroring the input layout (default: in place)"),
    ] = None,
    extensions: ExtensionsOption = None,
    retina: RetinaOption = None,
    public_path: PublicPathOption = None,
    check_exists: CheckExistsOption = None,
    webp: WebpOption = None,
    noscript_fallback: NoscriptOption = None,
    patterns: PatternOption = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", help="Show what would change without writing")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show the resolved settings")] = False,
) -> None:
    """
    Rewrite <img> tags into <picture> blocks.

    Documents are updated in place unless --output is given. A failing document
    is reported and skipped; the others are still converted.
    """
    config = build_config(extensions, retina, public_path, check_exists, webp, noscript_fallback)
    if verbose:
        display_config(config)

    if not config.enabled:
        console.print("[yellow]Nothing to do: webp and retina sources are both disabled.[/yellow]")
        raise typer.Exit(code=0)

    documents = collect_documents(paths, patterns or DEFAULT_PATTERNS)
    if not documents:
        console.print("[yellow]No documents found[/yellow]")
        raise typer.Exit(code=0)

    exists = make_exists_probe(config.public_path)
    results: list[DocumentResult] = []
    failures: list[tuple[Path, str]] = []

    with console.status(f"[cyan]Converting {len(documents)} document(s)...[/cyan]", spinner="dots"):
        for document, base in documents:
            destination = output_path(document, base, output_dir)
            try:
                results.append(transform_file(document, config, destination, exists=exists, dry_run=dry_run))
            except FilesystemProbeError as e:
                failures.append((document, str(e)))
            except UnicodeDecodeError as e:
                failures.append((document, f"Not a UTF-8 text document: {e.reason}"))
            except OSError as e:
                failures.append((document, f"{e.strerror or e}"))

    display_results(results, failures, dry_run=dry_run)

    if failures:
        raise typer.Exit(code=1)


@app.command()
def scan(
    paths: PathsArgument,
    extensions: ExtensionsOption = None,
    retina: RetinaOption = None,
    public_path: PublicPathOption = None,
    check_exists: CheckExistsOption = None,
    webp: WebpOption = None,
    noscript_fallback: NoscriptOption = None,
    patterns: PatternOption = None,
) -> None:
    """
    List the <img> tags that convert would rewrite.

    Shows the sources each tag would get with the current settings.
    Nothing is written.
    """
    config = build_config(extensions, retina, public_path, check_exists, webp, noscript_fallback)
    display_config(config)

    documents = collect_documents(paths, patterns or DEFAULT_PATTERNS)
    if not documents:
        console.print("[yellow]No documents found[/yellow]")
        raise typer.Exit(code=0)

    exists = make_exists_probe(config.public_path)
    failed = 0
    total = 0

    for document, _base in documents:
        try:
            text = document.read_text(encoding="utf-8")
            matches = find_image_tags(text, config)
            display_matches(document, matches, config, exists)
        except (FilesystemProbeError, UnicodeDecodeError, OSError) as e:
            console.print(f"[red]✗ {document}: {e}[/red]")
            failed += 1
            continue
        total += len(matches)

    console.print(f"[cyan]{total} image(s) to convert in {len(documents)} document(s)[/cyan]")

    if failed:
        raise typer.Exit(code=1)
