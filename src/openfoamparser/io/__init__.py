"""File access collaborators used by the reader."""

from .sources import (
    ByteSource,
    DirectoryLister,
    LocalDirectoryLister,
    LocalFileSource,
    MemorySource,
    join_path,
)

__all__ = [
    'ByteSource',
    'DirectoryLister',
    'LocalDirectoryLister',
    'LocalFileSource',
    'MemorySource',
    'join_path',
]
