"""Filesystem existence checks for image variants."""

from collections.abc import Callable
from pathlib import Path

ExistsProbe = Callable[[str], bool]


class FilesystemProbeError(Exception):
    """Raised when an image variant could not be checked on disk."""

    def __init__(self, path: Path, cause: OSError) -> None:
        super().__init__(f"Cannot check image {path}: {cause.strerror or cause}")
        self.path = path


def resolve_candidate(public_path: Path, candidate: str) -> Path:
    """Map an image URL path onto the public directory.

    Site-absolute paths ("/img/a.png") are relative to public_path, not to the
    filesystem root.
    """
    return public_path / candidate.lstrip("/")


def make_exists_probe(public_path: Path | str = ".") -> ExistsProbe:
    """Create a probe answering whether an image variant exists under public_path.

    Missing files are a normal outcome; any other OSError (permissions, I/O)
    is raised as FilesystemProbeError.
    """
    root = Path(public_path)

    def exists(candidate: str) -> bool:
        path = resolve_candidate(root, candidate)
        try:
            path.stat()
        except (FileNotFoundError, NotADirectoryError):
            return False
        except OSError as e:
            raise FilesystemProbeError(path, e) from e
        return True

    return exists


def make_static_probe(available: set[str] | frozenset[str]) -> ExistsProbe:
    """Create a probe backed by a precomputed set of image paths."""
    known = frozenset(available)
    return known.__contains__
