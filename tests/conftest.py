"""Shared pytest fixtures for webp-retina-html tests."""

import pytest

from webp_retina_html.config import PictureConfig

SETTINGS = (
    "WEBP_RETINA_EXTENSIONS",
    "WEBP_RETINA_SCALES",
    "WEBP_RETINA_PUBLIC_PATH",
    "WEBP_RETINA_CHECK_EXISTS",
    "WEBP_RETINA_NO_WEBP",
    "WEBP_RETINA_NOSCRIPT_FALLBACK",
)


@pytest.fixture(autouse=True)
def _clean_settings(monkeypatch):
    """Keep WEBP_RETINA_* variables of the host out of the tests."""
    for name in SETTINGS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def webp_config():
    """Defaults: webp sources only."""
    return PictureConfig()


@pytest.fixture
def retina_config():
    """Webp plus a 2x retina variant, no existence checks."""
    return PictureConfig(retina={2: "@2x"})


@pytest.fixture
def missing():
    """Existence probe that finds nothing."""
    return lambda _path: False


@pytest.fixture
def site(tmp_path):
    """A public directory with a few image variants and an HTML page."""
    public = tmp_path / "public"
    img = public / "img"
    img.mkdir(parents=True)
    for name in ("test.png", "test.webp", "test@2x.png", "test@2x.webp", "test@3x.png", "photo.jpg"):
        (img / name).write_bytes(b"")

    pages = tmp_path / "pages"
    (pages / "blog").mkdir(parents=True)
    (pages / "index.html").write_text(
        '<html>\n<body>\n<img src="/img/test.png" alt="test">\n</body>\n</html>\n',
        encoding="utf-8",
    )
    (pages / "blog" / "post.php").write_text(
        "<p>\n<img class=\"<?php echo 'photo' ?>\" src=\"/img/photo.jpg\">\n</p>\n",
        encoding="utf-8",
    )
    (pages / "notes.txt").write_text('<img src="/img/test.png">\n', encoding="utf-8")
    return tmp_path
