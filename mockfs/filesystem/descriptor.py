"""
Descriptor Module

The open-file table. Each descriptor binds a small integer to an item, a
byte position and the flags it was opened with. Numbers are allocated
lowest-available from ``FIRST_FD`` (0-2 are left to stdio) and reused after
close.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from mockfs.exceptions import (
    BadDescriptorError,
    InvalidArgumentError,
    TooManyOpenFilesError,
)
from .item import Item


O_ACCMODE = os.O_RDONLY | os.O_WRONLY | os.O_RDWR

# Not defined on every platform
O_SYNC = getattr(os, 'O_SYNC', 0)
O_DIRECTORY = getattr(os, 'O_DIRECTORY', 0)
O_NOFOLLOW = getattr(os, 'O_NOFOLLOW', 0)


class OpenMode(Enum):
    """Open modes in their string form, as accepted by ``open``."""
    READ = 'r'
    READ_SYNC = 'rs'
    READ_WRITE = 'r+'
    READ_WRITE_SYNC = 'rs+'
    WRITE = 'w'
    WRITE_EXCLUSIVE = 'wx'
    WRITE_READ = 'w+'
    WRITE_READ_EXCLUSIVE = 'wx+'
    APPEND = 'a'
    APPEND_EXCLUSIVE = 'ax'
    APPEND_READ = 'a+'
    APPEND_READ_EXCLUSIVE = 'ax+'

    @property
    def flags(self) -> int:
        return _MODE_FLAGS[self]


_MODE_FLAGS = {
    OpenMode.READ: os.O_RDONLY,
    OpenMode.READ_SYNC: os.O_RDONLY | O_SYNC,
    OpenMode.READ_WRITE: os.O_RDWR,
    OpenMode.READ_WRITE_SYNC: os.O_RDWR | O_SYNC,
    OpenMode.WRITE: os.O_TRUNC | os.O_CREAT | os.O_WRONLY,
    OpenMode.WRITE_EXCLUSIVE: os.O_TRUNC | os.O_CREAT | os.O_WRONLY | os.O_EXCL,
    OpenMode.WRITE_READ: os.O_TRUNC | os.O_CREAT | os.O_RDWR,
    OpenMode.WRITE_READ_EXCLUSIVE: os.O_TRUNC | os.O_CREAT | os.O_RDWR | os.O_EXCL,
    OpenMode.APPEND: os.O_APPEND | os.O_CREAT | os.O_WRONLY,
    OpenMode.APPEND_EXCLUSIVE: os.O_APPEND | os.O_CREAT | os.O_WRONLY | os.O_EXCL,
    OpenMode.APPEND_READ: os.O_APPEND | os.O_CREAT | os.O_RDWR,
    OpenMode.APPEND_READ_EXCLUSIVE: os.O_APPEND | os.O_CREAT | os.O_RDWR | os.O_EXCL,
}

# 'xw' and friends are accepted as spellings of 'wx'
_MODE_ALIASES = {
    'sr': 'rs',
    'sr+': 'rs+',
    'xw': 'wx',
    'xw+': 'wx+',
    'xa': 'ax',
    'xa+': 'ax+',
}


def parse_flags(flags: Union[int, str, OpenMode]) -> int:
    """
    Normalize open flags to an ``os.O_*`` bit set.

    Args:
        flags: Integer flags, a mode string such as ``'r+'`` or ``'wx'``,
            or an OpenMode

    Raises:
        InvalidArgumentError: For unknown mode strings or other types
    """
    if isinstance(flags, OpenMode):
        return flags.flags
    if isinstance(flags, bool):
        raise InvalidArgumentError(repr(flags), syscall='open')
    if isinstance(flags, int):
        if flags & O_ACCMODE == O_ACCMODE:
            raise InvalidArgumentError(repr(flags), syscall='open')
        return flags
    if isinstance(flags, str):
        text = flags.replace('b', '').replace('t', '')
        text = _MODE_ALIASES.get(text, text)
        try:
            return OpenMode(text).flags
        except ValueError:
            raise InvalidArgumentError(flags, syscall='open') from None
    raise InvalidArgumentError(repr(flags), syscall='open')


@dataclass
class Descriptor:
    """An open file description bound to a descriptor number."""
    fd: int
    item: Item
    path: str
    flags: int
    position: int = 0

    @property
    def access_mode(self) -> int:
        return self.flags & O_ACCMODE

    def can_read(self) -> bool:
        return self.access_mode in (os.O_RDONLY, os.O_RDWR)

    def can_write(self) -> bool:
        return self.access_mode in (os.O_WRONLY, os.O_RDWR)

    def is_append(self) -> bool:
        return bool(self.flags & os.O_APPEND)


class DescriptorTable:
    """
    Maps descriptor numbers to open descriptions.

    Allocation always picks the lowest free number at or above
    ``FIRST_FD``, so a closed number is handed out again by the next open.
    """

    FIRST_FD = 3

    def __init__(self, max_open_files: int = 1024):
        self._open_files: dict[int, Descriptor] = {}
        self.max_open_files = max_open_files

    def __len__(self) -> int:
        return len(self._open_files)

    def __contains__(self, fd: object) -> bool:
        return fd in self._open_files

    def is_full(self) -> bool:
        return len(self._open_files) >= self.max_open_files

    def allocate(self, item: Item, path: str, flags: int, syscall: str = 'open') -> Descriptor:
        """
        Register a new open description.

        Raises:
            TooManyOpenFilesError: When ``max_open_files`` are already open
        """
        if self.is_full():
            raise TooManyOpenFilesError(path, syscall=syscall)

        fd = self.FIRST_FD
        while fd in self._open_files:
            fd += 1

        descriptor = Descriptor(fd=fd, item=item, path=path, flags=flags)
        self._open_files[fd] = descriptor
        return descriptor

    def get(self, fd: int, syscall: Optional[str] = None) -> Descriptor:
        """
        Look up an open descriptor.

        Raises:
            BadDescriptorError: If ``fd`` is not open
        """
        descriptor = self._open_files.get(fd) if isinstance(fd, int) else None
        if descriptor is None:
            raise BadDescriptorError(fd=fd, syscall=syscall)
        return descriptor

    def release(self, fd: int, syscall: str = 'close') -> Descriptor:
        """
        Close a descriptor, freeing its number for reuse.

        Raises:
            BadDescriptorError: If ``fd`` is not open (e.g. already closed)
        """
        descriptor = self.get(fd, syscall=syscall)
        del self._open_files[fd]
        return descriptor

    def open_descriptors(self) -> list[int]:
        return sorted(self._open_files)

    def release_all(self) -> int:
        """Close every descriptor; returns how many were open."""
        count = len(self._open_files)
        self._open_files.clear()
        return count
