"""Reading and writing documents around the core transformation."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from .scanner import find_image_tags, transform

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import PictureConfig
    from .probe import ExistsProbe

DEFAULT_PATTERNS = ("*.html", "*.htm", "*.php")


class UnsupportedInputError(TypeError):
    """Raised when content is not a materialised text buffer (e.g. a stream)."""

    def __init__(self, content: object) -> None:
        super().__init__("Streaming not supported")
        self.content_type = type(content).__name__


@dataclass
class DocumentResult:
    """Outcome of transforming one document file."""

    source: Path
    destination: Path
    converted: int
    changed: bool


def transform_content(
    content: str | bytes | None, config: PictureConfig, exists: ExistsProbe | None = None
) -> str | bytes | None:
    """Transform document content of any supported representation.

    None passes through untouched, str and UTF-8 bytes are transformed, anything
    else (file objects, iterators) raises UnsupportedInputError.
    """
    if content is None:
        return None
    if isinstance(content, str):
        return transform(content, config, exists)
    if isinstance(content, (bytes, bytearray)):
        return transform(bytes(content).decode("utf-8"), config, exists).encode("utf-8")
    raise UnsupportedInputError(content)


def collect_documents(paths: Iterable[Path], patterns: Iterable[str] = DEFAULT_PATTERNS) -> list[tuple[Path, Path]]:
    """Expand files and directories into (document, base directory) pairs.

    Directories are searched recursively for the given glob patterns. Each
    document is listed once, in sorted order per argument.
    """
    patterns = tuple(patterns)
    seen: set[Path] = set()
    documents: list[tuple[Path, Path]] = []

    for path in paths:
        if path.is_dir():
            found = sorted({match for pattern in patterns for match in path.rglob(pattern) if match.is_file()})
            base = path
        else:
            found = [path]
            base = path.parent
        for document in found:
            key = document.resolve()
            if key not in seen:
                seen.add(key)
                documents.append((document, base))
    return documents


def output_path(document: Path, base: Path, output_dir: Path | None) -> Path:
    """Where the transformed document is written: in place, or mirrored under output_dir."""
    if output_dir is None:
        return document
    return output_dir / document.relative_to(base)


def transform_file(
    source: Path,
    config: PictureConfig,
    destination: Path | None = None,
    *,
    exists: ExistsProbe | None = None,
    dry_run: bool = False,
) -> DocumentResult:
    """Transform one document file, writing in place unless destination is given."""
    destination = destination or source
    original = source.read_bytes()
    converted = len(find_image_tags(original.decode("utf-8"), config))
    updated = transform_content(original, config, exists)
    changed = updated != original

    if not dry_run and (changed or destination != source):
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(updated)

    return DocumentResult(source=source, destination=destination, converted=converted, changed=changed)
