"""Tests for CLI functionality."""

import pytest
from typer.testing import CliRunner

from webp_retina_html.cli import app
from webp_retina_html.probe import FilesystemProbeError

runner = CliRunner()


@pytest.fixture
def pages(site):
    return site / "pages"


class TestVersion:
    """Tests for --version."""

    def test_version(self, mocker):
        """Should print the version and exit."""
        mocker.patch("webp_retina_html.cli.__version__", "1.2.3")
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "webp-retina-html 1.2.3" in result.output


class TestConvertCommand:
    """Tests for the convert command."""

    def test_convert_in_place(self, pages):
        """Should rewrite documents found in a directory."""
        result = runner.invoke(app, ["convert", str(pages), "--retina", "2=@2x"])

        assert result.exit_code == 0
        index = (pages / "index.html").read_text(encoding="utf-8")
        post = (pages / "blog" / "post.php").read_text(encoding="utf-8")
        assert '<source srcset="/img/test.webp, /img/test@2x.webp 2x" type="image/webp">' in index
        assert '<source srcset="/img/photo.jpg, /img/photo@2x.jpg 2x" type="image/jpeg">' in post
        assert "<?php echo 'photo' ?>" in post
        # notes.txt is not matched by the default patterns
        assert (pages / "notes.txt").read_text(encoding="utf-8") == '<img src="/img/test.png">\n'

    def test_convert_output_dir(self, pages, tmp_path):
        """Should mirror documents into the output directory."""
        out = tmp_path / "build"
        original = (pages / "index.html").read_bytes()

        result = runner.invoke(app, ["convert", str(pages), "-o", str(out)])

        assert result.exit_code == 0
        assert (pages / "index.html").read_bytes() == original
        assert "<picture>" in (out / "index.html").read_text(encoding="utf-8")
        assert "<picture>" in (out / "blog" / "post.php").read_text(encoding="utf-8")

    def test_convert_check_exists(self, site, pages):
        """Only variants present under the public path are referenced."""
        result = runner.invoke(
            app,
            [
                "convert",
                str(pages / "index.html"),
                "-r",
                "1=",
                "-r",
                "2=@2x",
                "-r",
                "3=@3x",
                "--check-exists",
                "--public-path",
                str(site / "public"),
            ],
        )

        assert result.exit_code == 0
        index = (pages / "index.html").read_text(encoding="utf-8")
        assert '<source srcset="/img/test.webp 1x, /img/test@2x.webp 2x" type="image/webp">' in index
        assert '<source srcset="/img/test.png 1x, /img/test@2x.png 2x, /img/test@3x.png 3x" type="image/png">' in index

    def test_convert_check_exists_short_flag(self, site, pages):
        """-c enables existence checks."""
        result = runner.invoke(app, ["convert", str(pages / "blog" / "post.php"), "-c", "-p", str(site / "public")])

        assert result.exit_code == 0
        post = (pages / "blog" / "post.php").read_text(encoding="utf-8")
        # photo.jpg exists but has no webp variant
        assert "<picture>\n<img class=" in post
        assert 'type="image/webp"' not in post

    def test_convert_glob(self, pages):
        """--glob selects other documents."""
        result = runner.invoke(app, ["convert", str(pages), "--glob", "*.txt"])

        assert result.exit_code == 0
        assert "<picture>" in (pages / "notes.txt").read_text(encoding="utf-8")
        assert "<picture>" not in (pages / "index.html").read_text(encoding="utf-8")

    def test_convert_dry_run(self, pages, mocker):
        """--dry-run leaves files untouched."""
        original = (pages / "index.html").read_bytes()

        mock_display = mocker.patch("webp_retina_html.cli.display_results")

        result = runner.invoke(app, ["convert", str(pages), "--dry-run"])

        assert result.exit_code == 0
        assert mock_display.call_args[1]["dry_run"] is True
        assert all(r.changed for r in mock_display.call_args[0][0])
        assert (pages / "index.html").read_bytes() == original

    def test_convert_nothing_enabled(self, pages):
        """With webp off and no retina there is nothing to do."""
        original = (pages / "index.html").read_bytes()

        result = runner.invoke(app, ["convert", str(pages), "--no-webp"])

        assert result.exit_code == 0
        assert "Nothing to do" in result.output
        assert (pages / "index.html").read_bytes() == original

    def test_convert_invalid_retina(self, pages):
        """Malformed retina options are rejected."""
        result = runner.invoke(app, ["convert", str(pages), "--retina", "2@2x"])
        assert result.exit_code != 0

    def test_convert_missing_path(self, tmp_path):
        """Paths must exist."""
        result = runner.invoke(app, ["convert", str(tmp_path / "missing.html")])
        assert result.exit_code != 0

    def test_convert_no_documents(self, tmp_path):
        """An empty directory is not an error."""
        result = runner.invoke(app, ["convert", str(tmp_path)])
        assert result.exit_code == 0
        assert "No documents found" in result.output

    def test_convert_failure_keeps_others(self, pages, mocker):
        """A failing document is reported; the others are still converted."""
        from webp_retina_html import pipeline

        real = pipeline.transform_file

        def flaky(source, *args, **kwargs):
            if source.suffix == ".php":
                raise FilesystemProbeError(source, PermissionError(13, "Permission denied"))
            return real(source, *args, **kwargs)

        mocker.patch("webp_retina_html.cli.transform_file", side_effect=flaky)
        mock_display = mocker.patch("webp_retina_html.cli.display_results")

        result = runner.invoke(app, ["convert", str(pages)])

        assert result.exit_code == 1
        results, failures = mock_display.call_args[0]
        assert [r.source for r in results] == [pages / "index.html"]
        post = pages / "blog" / "post.php"
        assert failures == [(post, f"Cannot check image {post}: Permission denied")]
        assert "<picture>" in (pages / "index.html").read_text(encoding="utf-8")

    def test_convert_binary_document(self, tmp_path, mocker):
        """Non UTF-8 documents fail without stopping the run."""
        (tmp_path / "bad.html").write_bytes(b"\xff\xfe<img src='/a.png'>")
        (tmp_path / "good.html").write_text('<img src="/a.png">', encoding="utf-8")

        mock_display = mocker.patch("webp_retina_html.cli.display_results")

        result = runner.invoke(app, ["convert", str(tmp_path)])

        assert result.exit_code == 1
        _results, failures = mock_display.call_args[0]
        assert failures[0][0] == tmp_path / "bad.html"
        assert failures[0][1].startswith("Not a UTF-8 text document")
        assert "<picture>" in (tmp_path / "good.html").read_text(encoding="utf-8")

    def test_convert_uses_environment(self, pages, monkeypatch):
        """Settings from the environment apply when flags are absent."""
        monkeypatch.setenv("WEBP_RETINA_SCALES", "2=@2x")
        monkeypatch.setenv("WEBP_RETINA_NO_WEBP", "true")

        result = runner.invoke(app, ["convert", str(pages / "index.html")])

        assert result.exit_code == 0
        index = (pages / "index.html").read_text(encoding="utf-8")
        assert 'type="image/webp"' not in index
        assert '<source srcset="/img/test.png, /img/test@2x.png 2x" type="image/png">' in index

    def test_convert_webp_flag_overrides_environment(self, pages, monkeypatch):
        """--webp re-enables webp disabled in the environment."""
        monkeypatch.setenv("WEBP_RETINA_NO_WEBP", "true")

        result = runner.invoke(app, ["convert", str(pages / "index.html"), "--webp"])

        assert result.exit_code == 0
        assert 'type="image/webp"' in (pages / "index.html").read_text(encoding="utf-8")

    def test_convert_verbose_shows_settings(self, pages, mocker):
        """--verbose prints the resolved settings."""
        mock_display = mocker.patch("webp_retina_html.cli.display_config")

        result = runner.invoke(app, ["convert", str(pages), "-v", "-e", "jpg"])

        assert result.exit_code == 0
        config = mock_display.call_args[0][0]
        assert config.extensions == frozenset({"jpg"})


class TestScanCommand:
    """Tests for the scan command."""

    def test_scan_lists_images(self, pages):
        """Should list images without writing anything."""
        original = (pages / "index.html").read_bytes()

        result = runner.invoke(app, ["scan", str(pages), "-r", "2=@2x"])

        assert result.exit_code == 0
        assert "/img/test.png" in result.output
        assert "/img/photo.jpg" in result.output
        assert "2 image(s) to convert in 2 document(s)" in result.output
        assert (pages / "index.html").read_bytes() == original

    def test_scan_calls_display(self, pages, mocker):
        """Each document is passed to display_matches with its matches."""
        mock_display = mocker.patch("webp_retina_html.cli.display_matches")

        result = runner.invoke(app, ["scan", str(pages / "index.html")])

        assert result.exit_code == 0
        document, matches, _config, _exists = mock_display.call_args[0]
        assert document == pages / "index.html"
        assert [(index, match.main.path) for index, match in matches] == [(2, "/img/test.png")]

    def test_scan_probe_error(self, pages, mocker):
        """Probe errors fail the run."""
        mocker.patch(
            "webp_retina_html.cli.display_matches",
            side_effect=FilesystemProbeError(pages, PermissionError(13, "Permission denied")),
        )

        mock_console = mocker.patch("webp_retina_html.cli.console")

        result = runner.invoke(app, ["scan", str(pages / "index.html")])

        assert result.exit_code == 1
        printed = " ".join(str(call.args[0]) for call in mock_console.print.call_args_list if call.args)
        assert "Permission denied" in printed
