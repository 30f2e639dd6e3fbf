"""
Filesystem-backed byte store for cached registry files.

Keys map onto two roots: spec index files live under ``specs_dir`` so they
can be purged wholesale, everything else mirrors the request path under
``cache_dir``. The file mtime is the only metadata kept.
"""

from __future__ import annotations

import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union
from urllib.parse import quote

from shared.errors import DirectoryConflict, InvalidResourceKey, NotFoundLocally
from shared.logging import get_logger

from .classifier import ResourceKey, ResourceKind, is_spec_index_name

GEMS_SUBDIR = "gems"
GEM_SUFFIX = ".gem"


class FileStore:
    """Byte store keyed by ResourceKey."""

    def __init__(self, cache_dir: Union[str, Path], specs_dir: Union[str, Path]):
        self.cache_dir = Path(cache_dir).absolute()
        self.specs_dir = Path(specs_dir).absolute()
        self.logger = get_logger("gem_proxy.store")

    def root_for(self, kind: ResourceKind) -> Path:
        if kind is ResourceKind.SPEC_INDEX:
            return self.specs_dir
        return self.cache_dir

    def path_for(self, key: ResourceKey, kind: ResourceKind) -> Path:
        """Resolve the on-disk location of ``key``.

        Every key maps to its own file: the path segments are used as-is and
        the query is percent-encoded into the file name, so no part of the
        query can act as a path separator.

        Raises InvalidResourceKey for empty, ``.`` or ``..`` segments and
        DirectoryConflict for a trailing slash.
        """
        root = self.root_for(kind)
        if key.path == "/":
            return root
        if key.path.endswith("/"):
            raise DirectoryConflict(key.target)

        segments = key.path.lstrip("/").split("/")
        for segment in segments:
            if segment in ("", ".", "..") or "\x00" in segment:
                raise InvalidResourceKey(key.target, details={"root": str(root)})

        if key.query:
            segments[-1] = f"{segments[-1]}?{quote(key.query, safe='')}"
        return root.joinpath(*segments)

    def exists(self, key: ResourceKey, kind: ResourceKind) -> bool:
        return self.path_for(key, kind).is_file()

    def is_directory(self, key: ResourceKey, kind: ResourceKind) -> bool:
        return self.path_for(key, kind).is_dir()

    def last_modified(self, key: ResourceKey, kind: ResourceKind) -> Optional[float]:
        """Entry mtime as a POSIX timestamp, or None when there is no file."""
        path = self.path_for(key, kind)
        try:
            if not path.is_file():
                return None
            return path.stat().st_mtime
        except OSError:
            return None

    def size(self, key: ResourceKey, kind: ResourceKind) -> int:
        path = self.path_for(key, kind)
        try:
            return path.stat().st_size
        except OSError as exc:
            raise NotFoundLocally(key.target, str(exc)) from exc

    def read(self, key: ResourceKey, kind: ResourceKind) -> bytes:
        path = self.path_for(key, kind)
        try:
            return path.read_bytes()
        except OSError as exc:
            raise NotFoundLocally(key.target, str(exc), details={"path": str(path)}) from exc

    def write(self, key: ResourceKey, kind: ResourceKind, content: bytes) -> Path:
        """Replace the entry for ``key`` with ``content``.

        The bytes go to a temporary sibling first and are renamed into place,
        so readers see either the old file or the complete new one.
        """
        path = self.path_for(key, kind)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
        return path

    def purge_spec_index_files(self) -> int:
        """Delete every spec index file under the specs root, fresh or not."""
        if not self.specs_dir.is_dir():
            return 0

        removed = 0
        for path in sorted(self.specs_dir.rglob("*")):
            if not path.is_file() or not is_spec_index_name(path.name):
                continue
            try:
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                self.logger.error("Could not remove spec index file", path=str(path), error=str(exc))
                continue
            removed += 1
        self.logger.info("Spec index files purged", removed=removed, root=str(self.specs_dir))
        return removed

    def list_artifacts(self) -> List[Path]:
        """All cached gem archives under ``<cache_dir>/gems``."""
        gems_dir = self.cache_dir / GEMS_SUBDIR
        if not gems_dir.is_dir():
            return []
        return sorted(path for path in gems_dir.rglob(f"*{GEM_SUFFIX}") if path.is_file())


def _version_sort_key(version: str):
    return [(0, int(part), "") if part.isdigit() else (1, 0, part) for part in re.split(r"[.\-]", version)]


def split_gem_filename(filename: str) -> Optional[tuple]:
    """Split ``<name>-<version>.gem`` on its last hyphen.

    Returns None for names without a hyphen.
    """
    stem = filename[: -len(GEM_SUFFIX)] if filename.endswith(GEM_SUFFIX) else filename
    name, sep, version = stem.rpartition("-")
    if not sep or not name or not version:
        return None
    return name, version


def group_gems(paths: Iterable[Path]) -> Dict[str, List[str]]:
    """Group gem archive paths into ``{name: [versions...]}``."""
    grouped: Dict[str, List[str]] = {}
    for path in paths:
        parts = split_gem_filename(Path(path).name)
        if parts is None:
            continue
        name, version = parts
        grouped.setdefault(name, []).append(version)

    return {
        name: sorted(versions, key=_version_sort_key)
        for name, versions in sorted(grouped.items())
    }
