"""MkDocs hook wrapping page images in <picture> blocks.

Enable it in ``mkdocs.yml``::

    hooks:
      - path/to/webp_retina_html/mkdocs_hook.py

The hook runs at ``on_page_content``, after Markdown has been rendered to HTML,
so both Markdown images and inline ``<img>`` tags are covered. Settings come
from the WEBP_RETINA_* environment variables or ``.env``; with
WEBP_RETINA_CHECK_EXISTS enabled, set WEBP_RETINA_PUBLIC_PATH to the docs
directory so site-absolute image URLs resolve.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from webp_retina_html.config import load_config
from webp_retina_html.scanner import transform

if TYPE_CHECKING:
    from mkdocs.structure.pages import Page


def on_page_content(html: str, page: Page, **_kwargs: object) -> str:
    if getattr(page, "meta", {}).get("picture") is False:
        return html
    return transform(html, load_config())
