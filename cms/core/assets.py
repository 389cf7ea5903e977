"""Content-addressed, read-only view over the assets directory.

Logical names such as ``css/app.css`` map to hashed names such as
``css/app-<sha256>.css``. The hash changes whenever the file content does,
so the hashed URL can be cached by clients for a very long time; serving a
hashed name reads the logical file behind it.

All names are forward-slash paths relative to the store root. Names that
resolve outside the root raise :class:`AssetPathError`.
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
import re
import threading
from collections.abc import Iterator
from pathlib import Path

from core.errors import AssetPathError

logger = logging.getLogger(__name__)

_HASH_SUFFIX_RE = re.compile(r"-[0-9a-f]{64}$")


def clean_name(name: str) -> str:
    """Normalise *name* to a root-relative forward-slash path."""
    cleaned = posixpath.normpath("/" + name.replace("\\", "/"))
    return cleaned.lstrip("/")


def format_name(name: str, digest: str) -> str:
    """Insert *digest* before the first extension of the base name.

    >>> format_name("css/app.min.css", "ab")
    'css/app-ab.min.css'
    """
    if not digest:
        return name
    directory, base = posixpath.split(name)
    stem, dot, ext = base.partition(".")
    return posixpath.join(directory, f"{stem}-{digest}{dot}{ext}")


def parse_name(name: str) -> tuple[str, str]:
    """Split a hashed name into ``(logical name, digest)``.

    Names without a hash suffix come back unchanged with an empty digest.
    """
    directory, base = posixpath.split(name)
    stem, dot, ext = base.partition(".")
    if not _HASH_SUFFIX_RE.search(stem):
        return name, ""
    logical = posixpath.join(directory, f"{stem[:-65]}{dot}{ext}")
    return logical, stem[-64:]


class AssetStore:
    """Read-only file view rooted at *root*.

    Digests are computed on first use and memoised for the lifetime of the
    store; a file edited in place keeps its first digest until restart.
    """

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()
        self._digests: dict[str, str] = {}
        self._lock = threading.Lock()

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, name: str) -> Path:
        """Return the filesystem path of *name*, hashed or not."""
        logical, _ = parse_name(clean_name(name))
        path = (self._root / logical).resolve()
        if not path.is_relative_to(self._root):
            raise AssetPathError(name)
        return path

    def read_bytes(self, name: str) -> bytes:
        return self.resolve(name).read_bytes()

    def read_text(self, name: str, encoding: str = "utf-8") -> str:
        return self.resolve(name).read_text(encoding=encoding)

    def glob(self, pattern: str) -> Iterator[str]:
        """Yield root-relative names of files matching *pattern*, sorted."""
        for path in sorted(self._root.glob(pattern)):
            if path.is_file():
                yield path.relative_to(self._root).as_posix()

    def digest(self, name: str) -> str:
        """SHA-256 hex digest of the file behind *name*."""
        name = clean_name(name)
        with self._lock:
            cached = self._digests.get(name)
        if cached is not None:
            return cached

        digest = hashlib.sha256(self.read_bytes(name)).hexdigest()
        with self._lock:
            self._digests[name] = digest
        return digest

    def hash_name(self, name: str) -> str:
        """Return the cache-busting name for *name*.

        Unreadable files come back unchanged so a broken reference in a
        template still renders.
        """
        name = clean_name(name)
        try:
            return format_name(name, self.digest(name))
        except (OSError, AssetPathError):
            logger.warning("asset.hash_failed", extra={"asset": name})
            return name
