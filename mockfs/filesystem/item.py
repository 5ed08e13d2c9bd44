"""
Item Module

The node types of the simulated tree: File, Directory and SymbolicLink.
Every item carries the metadata an inode would (mode, owner, timestamps,
identity); the variant-specific payload lives on the subclass and is
selected through ``file_type``.

Items never point back at their parent. A Directory owns its children by
name, and a SymbolicLink only stores a path string.
"""

import stat
import time
from dataclasses import dataclass, field
from enum import Enum, Flag
from typing import Optional, Any, List

from mockfs.exceptions import InvalidArgumentError


DEFAULT_DEV = 8675309

DEFAULT_FILE_MODE = 0o666
DEFAULT_DIRECTORY_MODE = 0o777
DEFAULT_SYMLINK_MODE = 0o666


class FileType(Enum):
    """Types of items."""
    REGULAR = stat.S_IFREG
    DIRECTORY = stat.S_IFDIR
    SYMLINK = stat.S_IFLNK


class Permission(Flag):
    """Permission bits for the owner; shift right by 3 for group, 6 for other."""
    READ = 0o400
    WRITE = 0o200
    EXEC = 0o100


class InodeAllocator:
    """Hands out inode numbers for one filesystem instance."""

    def __init__(self, dev: int = DEFAULT_DEV, first_ino: int = 1):
        self.dev = dev
        self._next_ino = first_ino

    def allocate(self) -> int:
        ino = self._next_ino
        self._next_ino += 1
        return ino


@dataclass
class Item:
    """
    Base for every node in the tree.

    ``mode`` holds permission bits only; ``st_mode`` adds the type bits.
    ``birthtime`` is fixed at creation.
    """

    ino: int
    dev: int = DEFAULT_DEV
    mode: int = 0o644
    uid: int = 0
    gid: int = 0

    atime: float = field(default_factory=time.time)
    mtime: float = field(default_factory=time.time)
    ctime: float = field(default_factory=time.time)
    birthtime: float = field(default_factory=time.time)

    file_type = FileType.REGULAR

    def __post_init__(self):
        self.mode &= 0o7777

    @property
    def st_mode(self) -> int:
        return self.file_type.value | self.mode

    @property
    def is_directory(self) -> bool:
        return self.file_type == FileType.DIRECTORY

    @property
    def is_regular_file(self) -> bool:
        return self.file_type == FileType.REGULAR

    @property
    def is_symlink(self) -> bool:
        return self.file_type == FileType.SYMLINK

    @property
    def size(self) -> int:
        return 0

    @property
    def nlink(self) -> int:
        return 1

    def check_permission(self, uid: int, gid: int, perm: Permission) -> bool:
        """
        Check if a caller has a specific permission.

        Root has every permission; otherwise the owner, group or other
        triad is selected, in that order.

        Args:
            uid: Caller user ID
            gid: Caller group ID
            perm: Permission to check

        Returns:
            True if permission is granted
        """
        if uid == 0:
            return True

        bit = perm.value
        if uid == self.uid:
            return (self.mode & bit) != 0
        elif gid == self.gid:
            return (self.mode & (bit >> 3)) != 0
        else:
            return (self.mode & (bit >> 6)) != 0

    def can_read(self, uid: int, gid: int) -> bool:
        return self.check_permission(uid, gid, Permission.READ)

    def can_write(self, uid: int, gid: int) -> bool:
        return self.check_permission(uid, gid, Permission.WRITE)

    def can_execute(self, uid: int, gid: int) -> bool:
        return self.check_permission(uid, gid, Permission.EXEC)

    def chmod(self, mode: int) -> None:
        """Change permission mode."""
        self.mode = mode & 0o7777
        self.ctime = time.time()

    def chown(self, uid: int, gid: int) -> None:
        """Change owner and group. -1 leaves the value unchanged."""
        if uid != -1:
            self.uid = uid
        if gid != -1:
            self.gid = gid
        self.ctime = time.time()

    def utimes(self, atime: float, mtime: float) -> None:
        self.atime = atime
        self.mtime = mtime
        self.ctime = time.time()

    def touch(self) -> None:
        """Mark content as changed."""
        now = time.time()
        self.mtime = now
        self.ctime = now

    def to_dict(self) -> dict[str, Any]:
        """Convert item to dictionary for display."""
        return {
            'ino': self.ino,
            'type': self.file_type.name,
            'mode': oct(self.mode),
            'uid': self.uid,
            'gid': self.gid,
            'size': self.size,
            'nlink': self.nlink,
            'atime': time.strftime('%Y-%m-%d %H:%M', time.localtime(self.atime)),
            'mtime': time.strftime('%Y-%m-%d %H:%M', time.localtime(self.mtime)),
        }


@dataclass
class File(Item):
    """A regular file holding a mutable byte sequence."""

    mode: int = DEFAULT_FILE_MODE
    content: bytearray = field(default_factory=bytearray, repr=False)

    file_type = FileType.REGULAR

    def __post_init__(self):
        super().__post_init__()
        self.content = bytearray(self.content)

    @property
    def size(self) -> int:
        return len(self.content)

    def get_content(self) -> bytes:
        return bytes(self.content)

    def read(self, offset: int = 0, size: int = -1) -> bytes:
        """
        Read data from the file.

        Args:
            offset: Byte offset to start reading
            size: Number of bytes to read (-1 for all)

        Returns:
            Data read from the file; shorter than ``size`` at end of content
        """
        self.atime = time.time()

        if size < 0:
            return bytes(self.content[offset:])
        return bytes(self.content[offset:offset + size])

    def write(self, data: bytes, offset: int = 0) -> int:
        """
        Write data to the file.

        A write starting past the end zero-fills the gap.

        Args:
            data: Data to write
            offset: Byte offset to write at

        Returns:
            Number of bytes written
        """
        if offset > len(self.content):
            self.content.extend(bytes(offset - len(self.content)))

        self.content[offset:offset + len(data)] = data
        self.touch()

        return len(data)

    def truncate(self, size: int) -> None:
        """Truncate or zero-pad the file to the given size."""
        if size < len(self.content):
            del self.content[size:]
        else:
            self.content.extend(bytes(size - len(self.content)))
        self.touch()

    def set_content(self, data: bytes) -> None:
        self.content = bytearray(data)
        self.touch()


@dataclass
class Directory(Item):
    """A directory owning its children by name, in insertion order."""

    mode: int = DEFAULT_DIRECTORY_MODE
    _items: dict[str, Item] = field(default_factory=dict, repr=False)

    file_type = FileType.DIRECTORY

    @property
    def nlink(self) -> int:
        return 2 + sum(1 for item in self._items.values() if item.is_directory)

    @staticmethod
    def validate_name(name: Any) -> str:
        """
        Check a single entry name.

        Raises:
            InvalidArgumentError: For empty names, names containing a
                separator or NUL, and the reserved ``.`` and ``..``
        """
        if not isinstance(name, str) or not name:
            raise InvalidArgumentError(repr(name), context={'reason': 'empty or non-string name'})
        if '/' in name or '\0' in name:
            raise InvalidArgumentError(name, context={'reason': 'name contains a separator'})
        if name in ('.', '..'):
            raise InvalidArgumentError(name, context={'reason': 'reserved name'})
        return name

    def add_item(self, name: str, item: Item) -> None:
        """Add (or replace) a directory entry."""
        self._items[self.validate_name(name)] = item
        self.touch()

    def remove_item(self, name: str) -> Optional[Item]:
        """Remove a directory entry, returning the detached item."""
        item = self._items.pop(name, None)
        if item is not None:
            self.touch()
        return item

    def get_item(self, name: str) -> Optional[Item]:
        return self._items.get(name)

    def list_names(self) -> List[str]:
        return list(self._items)

    def list_items(self) -> List[tuple[str, Item]]:
        return list(self._items.items())

    def is_empty(self) -> bool:
        return not self._items


@dataclass
class SymbolicLink(Item):
    """A link storing a target path, resolved only during traversal."""

    mode: int = DEFAULT_SYMLINK_MODE
    target: str = ''

    file_type = FileType.SYMLINK

    @property
    def size(self) -> int:
        return len(self.target.encode('utf-8'))
