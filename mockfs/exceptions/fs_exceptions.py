"""
Filesystem Exceptions

The error taxonomy of the simulated filesystem. Every failing operation
raises exactly one of these; each carries the symbolic kind (an errno
name), the path or descriptor involved and the operation that raised it.

All classes derive from OSError, and where Python has a matching builtin
subclass (FileNotFoundError, IsADirectoryError, ...) they derive from that
too, so code under test can branch on them the same way it would on the
real filesystem.
"""

import errno
from enum import Enum
from typing import Optional, Any


class ErrorKind(Enum):
    """Symbolic failure kinds, named after the errno codes they mirror."""
    NOT_FOUND = 'ENOENT'
    NOT_A_DIRECTORY = 'ENOTDIR'
    IS_A_DIRECTORY = 'EISDIR'
    ALREADY_EXISTS = 'EEXIST'
    NOT_EMPTY = 'ENOTEMPTY'
    PERMISSION_DENIED = 'EACCES'
    NOT_PERMITTED = 'EPERM'
    LINK_LOOP = 'ELOOP'
    BAD_DESCRIPTOR = 'EBADF'
    TOO_MANY_OPEN_FILES = 'EMFILE'
    INVALID_ARGUMENT = 'EINVAL'

    @property
    def errno(self) -> int:
        return getattr(errno, self.value)

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ErrorKind.NOT_FOUND: 'no such file or directory',
    ErrorKind.NOT_A_DIRECTORY: 'not a directory',
    ErrorKind.IS_A_DIRECTORY: 'illegal operation on a directory',
    ErrorKind.ALREADY_EXISTS: 'file already exists',
    ErrorKind.NOT_EMPTY: 'directory not empty',
    ErrorKind.PERMISSION_DENIED: 'permission denied',
    ErrorKind.NOT_PERMITTED: 'operation not permitted',
    ErrorKind.LINK_LOOP: 'too many symbolic links encountered',
    ErrorKind.BAD_DESCRIPTOR: 'bad file descriptor',
    ErrorKind.TOO_MANY_OPEN_FILES: 'too many open files',
    ErrorKind.INVALID_ARGUMENT: 'invalid argument',
}


class FileSystemException(OSError):
    """
    Base exception for all simulated filesystem errors.

    Subclasses pin ``kind``; the errno, strerror and numeric error code
    are derived from it.

    Attributes:
        kind: Symbolic failure kind
        path: Path associated with the error (if applicable)
        fd: Descriptor associated with the error (if applicable)
        syscall: Name of the operation that failed
        error_code: Numeric error code (the errno value)
        context: Additional context about the error
    """

    kind: ErrorKind = ErrorKind.INVALID_ARGUMENT

    def __init__(
        self,
        path: Optional[str] = None,
        syscall: Optional[str] = None,
        fd: Optional[int] = None,
        context: Optional[dict[str, Any]] = None
    ) -> None:
        super().__init__(self.kind.errno, self.kind.description, path)
        self.path = path
        self.fd = fd
        self.syscall = syscall
        self.error_code = self.kind.errno
        self.message = self.kind.description
        self.context = context or {}
        if path is not None:
            self.context['path'] = path
        if fd is not None:
            self.context['fd'] = fd

    @property
    def code(self) -> str:
        """The errno name, e.g. ``'ENOENT'``."""
        return self.kind.value

    def __str__(self) -> str:
        base = f"[Error {self.code}] {self.message}"
        if self.syscall:
            base = f"{base}, {self.syscall}"
        if self.path is not None:
            base = f"{base} '{self.path}'"
        elif self.fd is not None:
            base = f"{base} (fd={self.fd})"
        return base

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"path={self.path!r}, "
            f"syscall={self.syscall!r}, "
            f"fd={self.fd!r})"
        )


class EntryNotFoundError(FileSystemException, FileNotFoundError):
    """
    A path component does not exist.

    Example:
        >>> raise EntryNotFoundError('/missing', syscall='stat')
    """
    kind = ErrorKind.NOT_FOUND


class NotDirectoryError(FileSystemException, NotADirectoryError):
    """
    A path component used as a directory is not one.

    Raised for intermediate components that are files, for trailing
    slashes on non-directories, and for directory-only operations.
    """
    kind = ErrorKind.NOT_A_DIRECTORY


class IsDirectoryError(FileSystemException, IsADirectoryError):
    """A file-only operation was attempted on a directory."""
    kind = ErrorKind.IS_A_DIRECTORY


class EntryExistsError(FileSystemException, FileExistsError):
    """The name to be created is already taken."""
    kind = ErrorKind.ALREADY_EXISTS


class DirectoryNotEmptyError(FileSystemException):
    """
    Directory is not empty.

    Raised by rmdir, and by rename when the destination is a
    directory with entries.
    """
    kind = ErrorKind.NOT_EMPTY


class PermissionDeniedError(FileSystemException, PermissionError):
    """
    Permission bits forbid the requested access.

    Example:
        >>> raise PermissionDeniedError('/root/file', syscall='open')
    """
    kind = ErrorKind.PERMISSION_DENIED


class NotPermittedError(PermissionDeniedError):
    """Ownership forbids the operation (chmod/chown by a non-owner)."""
    kind = ErrorKind.NOT_PERMITTED


class LinkLoopError(FileSystemException):
    """Too many symbolic links were expanded while resolving a path."""
    kind = ErrorKind.LINK_LOOP


class BadDescriptorError(FileSystemException):
    """
    The descriptor is not open, or not open for the requested access.
    """
    kind = ErrorKind.BAD_DESCRIPTOR


class TooManyOpenFilesError(FileSystemException):
    """The descriptor table is full."""
    kind = ErrorKind.TOO_MANY_OPEN_FILES


class InvalidArgumentError(FileSystemException):
    """An argument is malformed or not applicable to the target."""
    kind = ErrorKind.INVALID_ARGUMENT
