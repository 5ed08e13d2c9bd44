"""
mockfs - An in-process simulated POSIX filesystem

Gives filesystem-dependent code under test a deterministic, hermetic tree
of files, directories and symbolic links, with POSIX error semantics and
an open-file table, without touching disk.
"""

__version__ = "1.0.0"

from typing import Any, Mapping, Optional

from .exceptions import (
    FileSystemException,
    EntryNotFoundError,
    NotDirectoryError,
    IsDirectoryError,
    EntryExistsError,
    DirectoryNotEmptyError,
    PermissionDeniedError,
    NotPermittedError,
    LinkLoopError,
    BadDescriptorError,
    TooManyOpenFilesError,
    InvalidArgumentError,
    SessionStateError,
    ConfigValidationError,
)
from .filesystem import FileSystem, StatResult, OpenMode, file, directory, symlink
from .session import MockSession, InterceptionAdapter
from .syscalls import Binding, SyscallNumber, SyscallResult


def create(config: Optional[Mapping[str, Any]] = None, **options: Any) -> FileSystem:
    """
    Create a filesystem seeded from ``config``.

    Args:
        config: Mapping of paths to node definitions
        **options: ``create_cwd``, ``create_tmp``, ``exclude_paths``,
            ``exclude_binding``, ``uid``, ``gid``, ``cwd``, ``umask``,
            ``max_open_files``, ``max_symlinks``

    Returns:
        A running FileSystem

    Example:
        >>> fs = create({'/tmp/foo.txt': 'hello'})
        >>> fs.stat('/tmp/foo.txt').st_size
        5
    """
    return FileSystem.create(config, **options)


__all__ = [
    'create',
    'file',
    'directory',
    'symlink',
    'FileSystem',
    'StatResult',
    'OpenMode',
    'MockSession',
    'InterceptionAdapter',
    'Binding',
    'SyscallNumber',
    'SyscallResult',
    'FileSystemException',
    'EntryNotFoundError',
    'NotDirectoryError',
    'IsDirectoryError',
    'EntryExistsError',
    'DirectoryNotEmptyError',
    'PermissionDeniedError',
    'NotPermittedError',
    'LinkLoopError',
    'BadDescriptorError',
    'TooManyOpenFilesError',
    'InvalidArgumentError',
    'SessionStateError',
    'ConfigValidationError',
]
