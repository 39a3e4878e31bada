"""webp-retina-html.

Rewrite ``<img>`` tags in HTML-like documents into ``<picture>`` blocks with
WebP and retina ``<source>`` variants.
"""

from __future__ import annotations

from importlib.metadata import version

from .config import PictureConfig, RetinaVariant, load_config
from .scanner import transform

__all__: list[str] = ["PictureConfig", "RetinaVariant", "load_config", "transform"]

__version__ = version("webp-retina-html")
