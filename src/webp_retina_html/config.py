"""Configuration for picture rendering.

Uses python-decouple for settings management. Configuration is read from:
1. Explicit overrides (CLI flags, keyword arguments)
2. Environment variables
3. .env file in current directory
4. Default values

Settings:
    WEBP_RETINA_EXTENSIONS: comma separated extensions to process (default "jpg,jpeg,png,gif")
    WEBP_RETINA_SCALES: comma separated "scale=suffix" pairs, e.g. "1=,2=@2x" (default empty)
    WEBP_RETINA_PUBLIC_PATH: root directory of the images (default ".")
    WEBP_RETINA_CHECK_EXISTS: only reference variants that exist on disk (default false)
    WEBP_RETINA_NO_WEBP: skip the webp <source> (default false)
    WEBP_RETINA_NOSCRIPT_FALLBACK: add a <noscript> image for lazy-loaded tags (default false)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import NamedTuple

from decouple import Csv, config

DEFAULT_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "gif"})


class ConfigError(ValueError):
    """Raised when a configuration value cannot be used."""


class RetinaVariant(NamedTuple):
    """A pixel density and the file name suffix of its image (2, "@2x")."""

    scale: int
    suffix: str


@dataclass(frozen=True)
class PictureConfig:
    """Resolved options for one transformation run."""

    extensions: frozenset[str] = DEFAULT_EXTENSIONS
    retina: tuple[RetinaVariant, ...] = ()
    public_path: Path = field(default_factory=lambda: Path("."))
    check_exists: bool = False
    no_webp: bool = False
    noscript_fallback: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "extensions", parse_extensions(self.extensions))
        object.__setattr__(self, "retina", parse_retina(self.retina))
        object.__setattr__(self, "public_path", Path(self.public_path))

    @property
    def add_webp(self) -> bool:
        """Whether a webp <source> is generated."""
        return not self.no_webp and bool(self.extensions)

    @property
    def add_retina(self) -> bool:
        """Whether retina variants are generated."""
        return bool(self.retina)

    @property
    def has_unit_scale(self) -> bool:
        """Whether the retina variants include an explicit 1x entry."""
        return any(variant.scale == 1 for variant in self.retina)

    @property
    def enabled(self) -> bool:
        """Whether any <source> can be produced at all."""
        return self.add_webp or self.add_retina

    def accepts(self, extension: str) -> bool:
        """Check whether images with this extension are processed."""
        return extension.lower() in self.extensions


def parse_extensions(values: Iterable[str] | str) -> frozenset[str]:
    """Normalise extensions to lowercase strings without a leading dot."""
    if isinstance(values, str):
        values = values.split(",")
    extensions = set()
    for value in values:
        if not isinstance(value, str):
            msg = f"Invalid extension: {value!r}"
            raise ConfigError(msg)
        ext = value.strip().lstrip(".").lower()
        if ext:
            extensions.add(ext)
    return frozenset(extensions)


def _parse_scale(raw: object) -> int:
    if isinstance(raw, bool):
        msg = f"Invalid retina scale: {raw!r}"
        raise ConfigError(msg)
    if isinstance(raw, str):
        raw = raw.strip().removesuffix("x")
    try:
        scale = int(raw)  # type: ignore[call-overload]
    except (TypeError, ValueError) as e:
        msg = f"Invalid retina scale: {raw!r}"
        raise ConfigError(msg) from e
    if scale < 1 or (isinstance(raw, float) and raw != scale):
        msg = f"Retina scale must be a positive integer, got {raw!r}"
        raise ConfigError(msg)
    return scale


def _parse_pair(item: str) -> tuple[str, str]:
    scale, sep, suffix = item.partition("=")
    if not sep:
        msg = f"Invalid retina entry {item!r}, expected SCALE=SUFFIX (e.g. 2=@2x)"
        raise ConfigError(msg)
    return scale, suffix.strip()


def parse_retina(
    value: str | Mapping[object, str] | Iterable[tuple[object, str] | str] | None,
) -> tuple[RetinaVariant, ...]:
    """Build the ordered retina variants.

    Accepts ``"1=,2=@2x"``, a mapping ``{2: "@2x"}``, or an iterable of
    ``(scale, suffix)`` pairs / ``"scale=suffix"`` strings. Mappings are sorted by
    scale; strings and sequences keep the order given.
    """
    if value is None:
        return ()
    if isinstance(value, str):
        pairs: Iterable = [_parse_pair(item) for item in value.split(",") if item.strip()]
    elif isinstance(value, Mapping):
        pairs = sorted(value.items(), key=lambda item: _parse_scale(item[0]))
    else:
        pairs = [_parse_pair(item) if isinstance(item, str) else item for item in value]

    variants: list[RetinaVariant] = []
    seen: set[int] = set()
    for raw_scale, suffix in pairs:
        scale = _parse_scale(raw_scale)
        if not isinstance(suffix, str):
            msg = f"Retina suffix for {scale}x must be a string, got {suffix!r}"
            raise ConfigError(msg)
        if scale in seen:
            msg = f"Duplicate retina scale: {scale}x"
            raise ConfigError(msg)
        seen.add(scale)
        variants.append(RetinaVariant(scale, suffix))
    return tuple(variants)


def load_config(
    *,
    extensions: Iterable[str] | None = None,
    retina: str | Mapping[object, str] | Iterable[tuple[object, str] | str] | None = None,
    public_path: Path | str | None = None,
    check_exists: bool | None = None,
    no_webp: bool | None = None,
    noscript_fallback: bool | None = None,
) -> PictureConfig:
    """Resolve the configuration.

    Explicit arguments win; ``None`` falls back to WEBP_RETINA_* settings from the
    environment or .env file, then to the defaults.
    """
    if extensions is None:
        extensions = config("WEBP_RETINA_EXTENSIONS", default=",".join(sorted(DEFAULT_EXTENSIONS)), cast=Csv())
    if retina is None:
        retina = config("WEBP_RETINA_SCALES", default="")
    if public_path is None:
        public_path = config("WEBP_RETINA_PUBLIC_PATH", default=".")
    if check_exists is None:
        check_exists = config("WEBP_RETINA_CHECK_EXISTS", default=False, cast=bool)
    if no_webp is None:
        no_webp = config("WEBP_RETINA_NO_WEBP", default=False, cast=bool)
    if noscript_fallback is None:
        noscript_fallback = config("WEBP_RETINA_NOSCRIPT_FALLBACK", default=False, cast=bool)

    return PictureConfig(
        extensions=extensions,
        retina=retina,
        public_path=public_path,
        check_exists=check_exists,
        no_webp=no_webp,
        noscript_fallback=noscript_fallback,
    )
