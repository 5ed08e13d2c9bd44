"""
Tree Builder Module

Declarative factories for seeding a filesystem, and the builder that
turns a configuration mapping into live items.

A configuration maps paths to node definitions::

    {
        '/etc/hosts': '127.0.0.1 localhost',
        'data': {'raw.bin': b'\\x00\\x01', 'empty': {}},
        '/var/log': directory(mode=0o755, items={'app.log': file(content='')}),
        '/current': symlink('/var/log'),
    }

Plain mappings become directories, ``str``/``bytes`` become file content,
and ``file()``/``directory()``/``symlink()`` give full control over
metadata. Top-level keys are paths (relative ones are taken against the
working directory); keys inside nested mappings must be single names.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

from mockfs.exceptions import InvalidArgumentError
from mockfs.logger import get_logger
from .item import (
    DEFAULT_DIRECTORY_MODE,
    DEFAULT_FILE_MODE,
    DEFAULT_SYMLINK_MODE,
    Directory,
    File,
    InodeAllocator,
    Item,
    SymbolicLink,
)
from .path_resolver import PathResolver


@dataclass
class NodeSpec:
    """Metadata shared by every node definition; ``None`` means default."""
    mode: int = 0
    uid: Optional[int] = None
    gid: Optional[int] = None
    atime: Optional[float] = None
    mtime: Optional[float] = None
    ctime: Optional[float] = None
    birthtime: Optional[float] = None


@dataclass
class FileSpec(NodeSpec):
    mode: int = DEFAULT_FILE_MODE
    content: bytes = b''


@dataclass
class DirectorySpec(NodeSpec):
    mode: int = DEFAULT_DIRECTORY_MODE
    items: dict[str, Any] = field(default_factory=dict)


@dataclass
class SymlinkSpec(NodeSpec):
    mode: int = DEFAULT_SYMLINK_MODE
    target: str = ''


Spec = Union[FileSpec, DirectorySpec, SymlinkSpec]


def _to_bytes(content: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(content, str):
        return content.encode('utf-8')
    if isinstance(content, (bytes, bytearray, memoryview)):
        return bytes(content)
    raise InvalidArgumentError(context={'reason': f'unsupported file content: {type(content).__name__}'})


def file(
    content: Union[str, bytes, bytearray] = b'',
    mode: int = DEFAULT_FILE_MODE,
    uid: Optional[int] = None,
    gid: Optional[int] = None,
    atime: Optional[float] = None,
    mtime: Optional[float] = None,
    ctime: Optional[float] = None,
    birthtime: Optional[float] = None
) -> FileSpec:
    """
    Define a file.

    Args:
        content: File content; ``str`` is encoded as UTF-8
        mode: Permission bits (default 0o666)
        uid: Owner (default: the filesystem's user)
        gid: Group (default: the filesystem's group)
        atime, mtime, ctime, birthtime: Timestamps (default: build time)
    """
    return FileSpec(
        mode=mode, uid=uid, gid=gid,
        atime=atime, mtime=mtime, ctime=ctime, birthtime=birthtime,
        content=_to_bytes(content)
    )


def directory(
    items: Optional[Mapping[str, Any]] = None,
    mode: int = DEFAULT_DIRECTORY_MODE,
    uid: Optional[int] = None,
    gid: Optional[int] = None,
    atime: Optional[float] = None,
    mtime: Optional[float] = None,
    ctime: Optional[float] = None,
    birthtime: Optional[float] = None
) -> DirectorySpec:
    """
    Define a directory.

    Args:
        items: Mapping of child names to node definitions
        mode: Permission bits (default 0o777)
    """
    return DirectorySpec(
        mode=mode, uid=uid, gid=gid,
        atime=atime, mtime=mtime, ctime=ctime, birthtime=birthtime,
        items=dict(items or {})
    )


def symlink(
    target: str,
    mode: int = DEFAULT_SYMLINK_MODE,
    uid: Optional[int] = None,
    gid: Optional[int] = None,
    atime: Optional[float] = None,
    mtime: Optional[float] = None,
    ctime: Optional[float] = None,
    birthtime: Optional[float] = None
) -> SymlinkSpec:
    """
    Define a symbolic link. ``target`` is stored verbatim.
    """
    if not isinstance(target, str) or '\0' in target:
        raise InvalidArgumentError(repr(target), context={'reason': 'invalid symlink target'})
    return SymlinkSpec(
        mode=mode, uid=uid, gid=gid,
        atime=atime, mtime=mtime, ctime=ctime, birthtime=birthtime,
        target=target
    )


class TreeBuilder:
    """
    Materializes node definitions into items.

    Inode numbers come from the filesystem's allocator, and unset owners
    default to the filesystem's credentials, so the same configuration
    always produces the same tree.
    """

    def __init__(self, allocator: InodeAllocator, uid: int = 0, gid: int = 0):
        self._allocator = allocator
        self.uid = uid
        self.gid = gid
        self._logger = get_logger('builder')

    def populate(self, root: Directory, config: Mapping[str, Any], cwd: str = '/') -> None:
        """
        Add every path of ``config`` to the tree under ``root``.

        Raises:
            InvalidArgumentError: For a malformed configuration; nothing is
                built lazily, so errors surface here
        """
        if not isinstance(config, Mapping):
            raise InvalidArgumentError(context={'reason': 'configuration must be a mapping'})

        for key, value in config.items():
            if not isinstance(key, str) or not key or '\0' in key:
                raise InvalidArgumentError(repr(key), context={'reason': 'invalid configuration path'})

            path = PathResolver.resolve_str(key, cwd)
            names = PathResolver.parse(path).components

            if not names:
                if not self._is_directory_value(value):
                    raise InvalidArgumentError(path, context={'reason': 'root must be a directory'})
                self._merge(root, self._build(value, path))
                continue

            parent = self.ensure_directories(root, names[:-1], path)
            self._place(parent, names[-1], self._build(value, path))

            self._logger.debug("Populated path", context={'path': path})

    def ensure_directories(self, root: Directory, names: list[str], path: str) -> Directory:
        """Walk ``names`` from ``root``, creating default directories as needed."""
        current = root
        for name in names:
            child = current.get_item(name)
            if child is None:
                child = self.new_directory()
                current.add_item(name, child)
            elif not isinstance(child, Directory):
                raise InvalidArgumentError(path, context={'reason': f'{name} is not a directory'})
            current = child
        return current

    def new_directory(self, mode: int = DEFAULT_DIRECTORY_MODE) -> Directory:
        return Directory(
            ino=self._allocator.allocate(),
            dev=self._allocator.dev,
            mode=mode,
            uid=self.uid,
            gid=self.gid
        )

    def build(self, value: Any, path: str = '') -> Item:
        """Materialize one node definition (and its children)."""
        return self._build(value, path)

    def _build(self, value: Any, path: str) -> Item:
        if isinstance(value, (str, bytes, bytearray, memoryview)):
            value = file(content=value)
        elif isinstance(value, Mapping):
            value = directory(items=value)

        if isinstance(value, FileSpec):
            item: Item = File(ino=self._allocator.allocate(), content=bytearray(value.content))
        elif isinstance(value, SymlinkSpec):
            item = SymbolicLink(ino=self._allocator.allocate(), target=value.target)
        elif isinstance(value, DirectorySpec):
            item = Directory(ino=self._allocator.allocate())
            for name, child in value.items.items():
                Directory.validate_name(name)
                item.add_item(name, self._build(child, f"{path.rstrip('/')}/{name}"))
        else:
            raise InvalidArgumentError(
                path or None,
                context={'reason': f'unsupported node definition: {type(value).__name__}'}
            )

        self._apply_metadata(item, value)
        return item

    def _apply_metadata(self, item: Item, spec: NodeSpec) -> None:
        now = time.time()
        item.dev = self._allocator.dev
        item.mode = spec.mode & 0o7777
        item.uid = self.uid if spec.uid is None else spec.uid
        item.gid = self.gid if spec.gid is None else spec.gid
        item.atime = now if spec.atime is None else spec.atime
        item.mtime = now if spec.mtime is None else spec.mtime
        item.ctime = now if spec.ctime is None else spec.ctime
        item.birthtime = now if spec.birthtime is None else spec.birthtime

    @staticmethod
    def _is_directory_value(value: Any) -> bool:
        return isinstance(value, (Mapping, DirectorySpec))

    def _place(self, parent: Directory, name: str, item: Item) -> None:
        existing = parent.get_item(name)
        if isinstance(existing, Directory) and isinstance(item, Directory):
            self._merge(existing, item)
        else:
            parent.add_item(name, item)

    def _merge(self, target: Directory, source: Directory) -> None:
        """Fold ``source``'s entries and metadata into existing ``target``."""
        for name, child in source.list_items():
            self._place(target, name, child)
        target.mode = source.mode
        target.uid = source.uid
        target.gid = source.gid
        target.atime = source.atime
        target.mtime = source.mtime
        target.ctime = source.ctime
