"""
mockfs Exception Hierarchy

Architecture:
    OSError
    └── FileSystemException
        ├── EntryNotFoundError         ENOENT
        ├── NotDirectoryError          ENOTDIR
        ├── IsDirectoryError           EISDIR
        ├── EntryExistsError           EEXIST
        ├── DirectoryNotEmptyError     ENOTEMPTY
        ├── PermissionDeniedError      EACCES
        │   └── NotPermittedError      EPERM
        ├── LinkLoopError              ELOOP
        ├── BadDescriptorError         EBADF
        ├── TooManyOpenFilesError      EMFILE
        └── InvalidArgumentError       EINVAL
    Exception
    └── SessionException
        ├── SessionStateError
        └── ConfigValidationError
"""

from .fs_exceptions import (
    ErrorKind,
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
)

from .session_exceptions import (
    SessionException,
    SessionStateError,
    ConfigValidationError,
)

__all__ = [
    # Filesystem exceptions
    "ErrorKind",
    "FileSystemException",
    "EntryNotFoundError",
    "NotDirectoryError",
    "IsDirectoryError",
    "EntryExistsError",
    "DirectoryNotEmptyError",
    "PermissionDeniedError",
    "NotPermittedError",
    "LinkLoopError",
    "BadDescriptorError",
    "TooManyOpenFilesError",
    "InvalidArgumentError",
    # Session exceptions
    "SessionException",
    "SessionStateError",
    "ConfigValidationError",
]
