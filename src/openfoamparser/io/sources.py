"""
File access collaborators.

The decoding core never touches the filesystem itself. It reads bytes through
a ByteSource, lists time directories through a DirectoryLister and builds
keys with join_path. Local and in-memory implementations are provided.
"""

import errno
import gzip
import logging
import os
import posixpath
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

COMPRESSED_SUFFIX = ".gz"


def join_path(root: PathLike, *parts: Optional[str]) -> str:
    """Join a case root, optional time / region names and a file name."""
    return posixpath.join(str(root), *(str(part) for part in parts if part))


def _not_found(path: str) -> FileNotFoundError:
    return FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), path)


class ByteSource(ABC):
    """Supplies the raw contents of a file."""

    @abstractmethod
    def read(self, path: PathLike) -> bytes:
        """Return the file contents; raise OSError when unavailable."""
        pass


class DirectoryLister(ABC):
    """Supplies the names of the sub-directories of a directory."""

    @abstractmethod
    def list_entries(self, path: PathLike) -> List[str]:
        """Return entry names; raise OSError when the directory is unavailable."""
        pass


class LocalFileSource(ByteSource):
    """Reads local files, falling back to ``<file>.gz`` for compressed cases."""

    def __init__(self, allow_compressed: bool = True):
        self.allow_compressed = allow_compressed

    def read(self, path: PathLike) -> bytes:
        path = Path(path)

        # Handle both .gz and uncompressed files
        if path.suffix == COMPRESSED_SUFFIX:
            with gzip.open(path, "rb") as f:
                return f.read()

        compressed = path.with_name(path.name + COMPRESSED_SUFFIX)
        if self.allow_compressed and not path.exists() and compressed.exists():
            logger.debug(f"Reading compressed {compressed}")
            with gzip.open(compressed, "rb") as f:
                return f.read()

        with open(path, "rb") as f:
            return f.read()


class LocalDirectoryLister(DirectoryLister):
    """Lists the sub-directories of a local directory."""

    def list_entries(self, path: PathLike) -> List[str]:
        return sorted(entry.name for entry in Path(path).iterdir() if entry.is_dir())


class MemorySource(ByteSource, DirectoryLister):
    """
    In-memory file tree keyed by POSIX paths.

    Directories are implied by the keys: ``case/0/U`` makes ``0`` an entry of
    ``case``.
    """

    def __init__(self, files: Optional[Dict[str, Union[bytes, str]]] = None,
                 allow_compressed: bool = True):
        self.allow_compressed = allow_compressed
        self.files: Dict[str, bytes] = {}
        for key, content in (files or {}).items():
            self.add(key, content)

    @staticmethod
    def _key(path: PathLike) -> str:
        return posixpath.normpath(str(path))

    def add(self, path: PathLike, content: Union[bytes, str]) -> None:
        if isinstance(content, str):
            content = content.encode("utf-8")
        self.files[self._key(path)] = content

    def read(self, path: PathLike) -> bytes:
        key = self._key(path)
        if key in self.files:
            content = self.files[key]
            return gzip.decompress(content) if key.endswith(COMPRESSED_SUFFIX) else content
        compressed = key + COMPRESSED_SUFFIX
        if self.allow_compressed and compressed in self.files:
            return gzip.decompress(self.files[compressed])
        raise _not_found(key)

    def list_entries(self, path: PathLike) -> List[str]:
        prefix = self._key(path).rstrip("/") + "/"
        entries = set()
        for key in self.files:
            if key.startswith(prefix):
                remainder = key[len(prefix):]
                if "/" in remainder:
                    entries.add(remainder.split("/", 1)[0])
        if not entries and not any(key.startswith(prefix) for key in self.files):
            raise _not_found(prefix.rstrip("/"))
        return sorted(entries)
