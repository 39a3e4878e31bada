"""Render <picture> blocks with webp and retina <source> variants."""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config import PictureConfig
    from .probe import ExistsProbe
    from .scanner import ImageReference, MatchResult

MIME_TYPES = MappingProxyType(
    {
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "jfif": "image/jpeg",
        "pjpeg": "image/jpeg",
        "pjp": "image/jpeg",
        "png": "image/png",
        "apng": "image/apng",
        "gif": "image/gif",
        "svg": "image/svg+xml",
        "webp": "image/webp",
        "bmp": "image/bmp",
        "ico": "image/x-icon",
        "cur": "image/x-icon",
        "tif": "image/tiff",
        "tiff": "image/tiff",
        "avif": "image/avif",
    }
)

WEBP = "webp"

# Attributes before the plain src attribute, the attribute with its leading space, then the rest of the tag.
_SRC_ATTRIBUTE_RE = re.compile(
    r"""(<img(?:"[^"]*"|'[^']*'|[^'">])*?)(\s+src=["'][^"'\s]+["'])((?:"[^"]*"|'[^']*'|[^'">])*>)""",
    re.IGNORECASE,
)

SourceSet = dict[str, list[str]]


def mime_type(extension: str) -> str:
    """Media type for an image extension, guessing image/<ext> for unknown ones."""
    return MIME_TYPES.get(extension, f"image/{extension}")


def strip_extension(path: str, extension: str) -> str:
    """Drop a trailing ".<extension>" from path (case-insensitive)."""
    suffix = f".{extension}"
    if extension and path.lower().endswith(suffix):
        return path[: -len(suffix)]
    return path


def build_source_set(image: ImageReference, config: PictureConfig, exists: ExistsProbe) -> SourceSet:
    """Collect srcset entries per format, webp first, then the image's own format.

    Unscaled variants come first in each list unless the retina variants contain
    an explicit 1x entry, which then takes their place.
    """

    def available(candidate: str) -> bool:
        return not config.check_exists or exists(candidate)

    name = strip_extension(image.path, image.extension)
    ext = image.extension
    sources: SourceSet = {}

    if config.add_webp:
        sources[WEBP] = []
        if available(f"{name}.webp"):
            sources[WEBP].append(f"{name}.webp")

    if config.add_retina:
        # A webp image shares its list with the webp source.
        sources[ext] = []
        if not config.has_unit_scale and available(f"{name}.{ext}"):
            sources[ext].append(f"{name}.{ext}")
        if config.has_unit_scale and WEBP in sources:
            sources[WEBP].clear()

        for scale, suffix in config.retina:
            if config.add_webp and ext != WEBP and available(f"{name}{suffix}.webp"):
                sources[WEBP].append(f"{name}{suffix}.webp {scale}x")
            if available(f"{name}{suffix}.{ext}"):
                sources[ext].append(f"{name}{suffix}.{ext} {scale}x")

    return sources


def noscript_tag(tag: str) -> str:
    """Turn a lazy-loading tag into a plain one: drop src, rename data-src to src."""
    return _SRC_ATTRIBUTE_RE.sub(r"\1\3", tag).replace("data-src", "src", 1)


def render_sources(sources: SourceSet, srcset_attr: str, fallback: ImageReference | None) -> str:
    """Render one <source> line per non-empty srcset list."""
    fallback_srcset = f' srcset="{fallback.path}"' if fallback else ""
    lines = []
    for key, entries in sources.items():
        if entries:
            lines.append(f'<source {srcset_attr}="{", ".join(entries)}"{fallback_srcset} type="{mime_type(key)}">\n')
    return "".join(lines)


def render_picture(match: MatchResult, config: PictureConfig, exists: ExistsProbe) -> str:
    """Render the markup replacing match.main.tag."""
    main = match.main
    lazy = "data-src" in main.tag
    srcset_attr = "data-srcset" if lazy else "srcset"

    noscript = ""
    if lazy and config.noscript_fallback:
        noscript = f"<noscript>{noscript_tag(main.tag)}</noscript>\n"

    sources = render_sources(build_source_set(main, config, exists), srcset_attr, match.fallback)
    return f"{noscript}<picture>\n{sources}{main.tag}\n</picture>"
