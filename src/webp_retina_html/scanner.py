"""Line-oriented scanner locating <img> tags and swapping in <picture> blocks.

Works on raw text so template code inside attributes (PHP, Jinja, ...) survives
untouched. Each line is matched on its own; tags spanning several lines are
left alone.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .probe import make_exists_probe
from .render import render_picture

if TYPE_CHECKING:
    from .config import PictureConfig
    from .probe import ExistsProbe

# Attributes before src are skipped quote-aware so matching stops at the tag's own ">".
# src= must follow whitespace so data-src is never taken for src.
_ATTRIBUTES = r"""(?:"[^"]*"|'[^']*'|[^'">])*"""
SRC_RE = re.compile(rf"""<img{_ATTRIBUTES}?\ssrc=["']([^"'\s]+)["']{_ATTRIBUTES}>""", re.IGNORECASE)
DATA_SRC_RE = re.compile(rf"""<img{_ATTRIBUTES}?\sdata-src=["']([^"'\s]+)["']{_ATTRIBUTES}>""", re.IGNORECASE)

PICTURE_OPEN = "<picture"
PICTURE_CLOSE = "</picture"


@dataclass(frozen=True)
class ImageReference:
    """An <img> tag and the image path taken from one of its attributes."""

    tag: str
    path: str

    @property
    def extension(self) -> str:
        """Lowercased text after the last dot of the path, or "" without one."""
        if "." not in self.path:
            return ""
        return self.path.rsplit(".", 1)[1].lower()

    @classmethod
    def from_match(cls, match: re.Match[str] | None) -> ImageReference | None:
        if match is None:
            return None
        return cls(tag=match.group(0), path=match.group(1))


@dataclass(frozen=True)
class MatchResult:
    """The image to render and, for lazy-loaded tags, the placeholder src."""

    main: ImageReference
    fallback: ImageReference | None = None


def match_image(line: str) -> MatchResult | None:
    """Extract the image reference from the first <img> tag shape on a line.

    data-src wins over src; the src of that same tag then becomes the fallback.
    """
    data_src = ImageReference.from_match(DATA_SRC_RE.search(line))
    if data_src is not None:
        return MatchResult(main=data_src, fallback=ImageReference.from_match(SRC_RE.search(data_src.tag)))
    src = ImageReference.from_match(SRC_RE.search(line))
    if src is not None:
        return MatchResult(main=src)
    return None


def _scan_lines(lines: Sequence[str], config: PictureConfig) -> Iterator[tuple[int, MatchResult]]:
    in_picture = False
    for index, line in enumerate(lines):
        opens = PICTURE_OPEN in line
        closes = PICTURE_CLOSE in line
        if opens:
            in_picture = True
        if closes:
            in_picture = False
        if opens or closes or in_picture or "<img" not in line:
            continue

        match = match_image(line)
        if match is not None and config.enabled and config.accepts(match.main.extension):
            yield index, match


def find_image_tags(document: str, config: PictureConfig) -> list[tuple[int, MatchResult]]:
    """List the (line index, match) pairs that transform() would rewrite."""
    return list(_scan_lines(document.split("\n"), config))


def transform(document: str, config: PictureConfig, exists: ExistsProbe | None = None) -> str:
    """Wrap every qualifying <img> tag of the document in a <picture> block.

    ``exists`` answers whether an image variant is available; it defaults to a
    filesystem probe under ``config.public_path`` and is only consulted when
    ``config.check_exists`` is set.
    """
    if exists is None:
        exists = make_exists_probe(config.public_path)

    lines = document.split("\n")
    for index, match in _scan_lines(tuple(lines), config):
        lines[index] = lines[index].replace(match.main.tag, render_picture(match, config, exists), 1)
    return "\n".join(lines)
