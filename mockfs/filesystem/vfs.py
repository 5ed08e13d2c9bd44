"""
Virtual File System (VFS) Module

The filesystem engine: one root directory, one descriptor table and one
working directory, with an operation per filesystem syscall.

Every operation either returns its result or raises exactly one
``FileSystemException`` subclass. Preconditions are checked before the
tree is touched, so a failed call leaves the tree as it was.
"""

import copy
import math
import os
import time
from dataclasses import dataclass
from typing import Optional, Any, List, Mapping, Union

from mockfs.core.config_loader import get_config
from mockfs.core.registry import Subsystem, SubsystemState
from mockfs.exceptions import (
    BadDescriptorError,
    DirectoryNotEmptyError,
    EntryExistsError,
    FileSystemException,
    InvalidArgumentError,
    IsDirectoryError,
    LinkLoopError,
    NotDirectoryError,
    NotPermittedError,
    PermissionDeniedError,
    TooManyOpenFilesError,
)
from .builder import TreeBuilder
from .descriptor import (
    O_DIRECTORY,
    O_NOFOLLOW,
    Descriptor,
    DescriptorTable,
    OpenMode,
    parse_flags,
)
from .item import (
    DEFAULT_DEV,
    DEFAULT_DIRECTORY_MODE,
    DEFAULT_SYMLINK_MODE,
    Directory,
    File,
    FileType,
    InodeAllocator,
    Item,
    SymbolicLink,
)
from .path_resolver import PathResolver, Resolution, TreeWalker


PathArg = Union[str, bytes, os.PathLike]


@dataclass(frozen=True)
class StatResult:
    """Metadata snapshot of an item, shaped like ``os.stat_result``."""
    st_mode: int
    st_ino: int
    st_dev: int
    st_nlink: int
    st_uid: int
    st_gid: int
    st_size: int
    st_atime: float
    st_mtime: float
    st_ctime: float
    st_birthtime: float
    st_blksize: int = 4096
    st_blocks: int = 0

    @classmethod
    def from_item(cls, item: Item) -> 'StatResult':
        return cls(
            st_mode=item.st_mode,
            st_ino=item.ino,
            st_dev=item.dev,
            st_nlink=item.nlink,
            st_uid=item.uid,
            st_gid=item.gid,
            st_size=item.size,
            st_atime=item.atime,
            st_mtime=item.mtime,
            st_ctime=item.ctime,
            st_birthtime=item.birthtime,
            st_blocks=math.ceil(item.size / 512),
        )

    def is_file(self) -> bool:
        return (self.st_mode & 0o170000) == FileType.REGULAR.value

    def is_dir(self) -> bool:
        return (self.st_mode & 0o170000) == FileType.DIRECTORY.value

    def is_symlink(self) -> bool:
        return (self.st_mode & 0o170000) == FileType.SYMLINK.value


def _host_id(name: str) -> int:
    getter = getattr(os, name, None)
    return getter() if getter is not None else 0


def _host_tmpdir() -> str:
    # Environment only; tempfile.gettempdir() writes to the real disk
    for name in ('TMPDIR', 'TEMP', 'TMP'):
        value = os.environ.get(name)
        if value and value.startswith('/'):
            return value
    return '/tmp'


def _fspath(path: PathArg) -> str:
    if isinstance(path, os.PathLike):
        path = os.fspath(path)
    if isinstance(path, bytes):
        return os.fsdecode(path)
    return path


def _first(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


class FileSystem(Subsystem):
    """
    Simulated filesystem.

    Example:
        >>> fs = FileSystem.create({'/tmp/foo.txt': 'hello'})
        >>> fs.read_file('/tmp/foo.txt', encoding='utf-8')
        'hello'
        >>> fd = fs.open('/tmp/bar.txt', 'w')
        >>> fs.write(fd, b'Hello, World!')
        13
        >>> fs.close(fd)
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        create_cwd: Optional[bool] = None,
        create_tmp: Optional[bool] = None,
        exclude_paths: Optional[List[str]] = None,
        exclude_binding: Any = None,
        uid: Optional[int] = None,
        gid: Optional[int] = None,
        cwd: Optional[str] = None,
        umask: Optional[int] = None,
        max_open_files: Optional[int] = None,
        max_symlinks: Optional[int] = None,
        dev: Optional[int] = None
    ):
        super().__init__('filesystem')
        settings = get_config()
        fs_config = settings.filesystem

        self._config = config or {}
        self.create_cwd = _first(create_cwd, settings.session.create_cwd)
        self.create_tmp = _first(create_tmp, settings.session.create_tmp)
        # Forwarded to the binding; the engine never interprets these.
        self.exclude_paths = list(_first(exclude_paths, settings.session.exclude_paths))
        self.exclude_binding = exclude_binding

        self.uid: int = _first(uid, fs_config.uid, _host_id('getuid'))
        self.gid: int = _first(gid, fs_config.gid, _host_id('getgid'))
        self._umask: int = _first(umask, fs_config.umask) & 0o777
        self._cwd: str = PathResolver.normalize(_first(cwd, fs_config.cwd) or os.getcwd())

        self._allocator = InodeAllocator(dev=_first(dev, fs_config.dev, DEFAULT_DEV))
        self._root = Directory(
            ino=self._allocator.allocate(),
            dev=self._allocator.dev,
            mode=DEFAULT_DIRECTORY_MODE,
            uid=self.uid,
            gid=self.gid
        )
        self._descriptors = DescriptorTable(
            max_open_files=_first(max_open_files, fs_config.max_open_files)
        )
        self._walker = TreeWalker(
            self._root,
            cwd=self.getcwd,
            uid=self.uid,
            gid=self.gid,
            max_symlinks=_first(max_symlinks, fs_config.max_symlinks)
        )
        self._builder = TreeBuilder(self._allocator, uid=self.uid, gid=self.gid)
        self._temp_counter = 0

    @classmethod
    def create(cls, config: Optional[Mapping[str, Any]] = None, **options: Any) -> 'FileSystem':
        """
        Build and initialize a filesystem from a configuration tree.

        Args:
            config: Mapping of paths to node definitions (see builder)
            **options: Keyword options of ``FileSystem.__init__``

        Returns:
            A running FileSystem
        """
        filesystem = cls(config, **options)
        filesystem.initialize()
        filesystem.start()
        return filesystem

    def initialize(self) -> None:
        """Create the working and temp directories, then seed the tree."""
        if self.create_cwd:
            self._builder.ensure_directories(
                self._root, PathResolver.parse(self._cwd).components, self._cwd
            )
        if self.create_tmp:
            tmp = PathResolver.normalize(_host_tmpdir())
            self._builder.ensure_directories(
                self._root, PathResolver.parse(tmp).components, tmp
            )

        self._builder.populate(self._root, self._config, cwd=self._cwd)

        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info(
            "Virtual filesystem initialized",
            context={'cwd': self._cwd, 'uid': self.uid, 'gid': self.gid}
        )

    def cleanup(self) -> None:
        """Close every open descriptor."""
        count = self._descriptors.release_all()
        if count:
            self._logger.debug("Closed leftover descriptors", context={'count': count})

    # Resolution helpers

    def _resolve(
        self,
        path: PathArg,
        syscall: str,
        follow_symlinks: bool = True,
        allow_missing: bool = False
    ) -> Resolution:
        return self._walker.resolve(
            _fspath(path),
            follow_symlinks=follow_symlinks,
            allow_missing=allow_missing,
            syscall=syscall
        )

    def _check_parent_writable(self, resolution: Resolution, path: str, syscall: str) -> Directory:
        parent = resolution.parent
        if parent is None:
            raise InvalidArgumentError(path, syscall=syscall)
        if not parent.can_write(self.uid, self.gid):
            raise PermissionDeniedError(path, syscall=syscall)
        return parent

    def _check_owner(self, item: Item, path: Optional[str], syscall: str, fd: Optional[int] = None) -> None:
        if self.uid != 0 and self.uid != item.uid:
            raise NotPermittedError(path, syscall=syscall, fd=fd)

    def _new_directory(self, mode: int) -> Directory:
        return Directory(
            ino=self._allocator.allocate(),
            dev=self._allocator.dev,
            mode=mode & ~self._umask,
            uid=self.uid,
            gid=self.gid
        )

    # Metadata

    def stat(self, path: PathArg) -> StatResult:
        """Metadata of the item ``path`` leads to, following symlinks."""
        return StatResult.from_item(self._resolve(path, 'stat').item)

    def lstat(self, path: PathArg) -> StatResult:
        """Metadata of ``path`` itself; a final symlink is not followed."""
        return StatResult.from_item(self._resolve(path, 'lstat', follow_symlinks=False).item)

    def fstat(self, fd: int) -> StatResult:
        return StatResult.from_item(self._descriptors.get(fd, 'fstat').item)

    def exists(self, path: PathArg) -> bool:
        """Check if a path resolves, following symlinks."""
        try:
            self._resolve(path, 'stat')
        except FileSystemException:
            return False
        return True

    def is_directory(self, path: PathArg) -> bool:
        return self.exists(path) and self.stat(path).is_dir()

    def is_file(self, path: PathArg) -> bool:
        return self.exists(path) and self.stat(path).is_file()

    def realpath(self, path: PathArg) -> str:
        """Canonical absolute path with every symlink expanded."""
        return self._resolve(path, 'realpath').path

    def access(self, path: PathArg, mode: int = os.F_OK) -> None:
        """
        Check the caller's access to ``path``.

        Args:
            path: Path to check
            mode: ``os.F_OK`` or a combination of ``R_OK``/``W_OK``/``X_OK``

        Raises:
            PermissionDeniedError: If any requested access is denied
        """
        item = self._resolve(path, 'access').item
        checks = (
            (os.R_OK, item.can_read),
            (os.W_OK, item.can_write),
            (os.X_OK, item.can_execute),
        )
        for bit, check in checks:
            if mode & bit and not check(self.uid, self.gid):
                raise PermissionDeniedError(_fspath(path), syscall='access')

    def chmod(self, path: PathArg, mode: int) -> None:
        """Change file permissions. Only the owner or root may do this."""
        item = self._resolve(path, 'chmod').item
        self._check_owner(item, _fspath(path), 'chmod')
        item.chmod(mode)

    def fchmod(self, fd: int, mode: int) -> None:
        item = self._descriptors.get(fd, 'fchmod').item
        self._check_owner(item, None, 'fchmod', fd=fd)
        item.chmod(mode)

    def _chown(self, item: Item, uid: int, gid: int, path: Optional[str], syscall: str, fd: Optional[int] = None) -> None:
        # Non-root owners may only change the group of their own items.
        if self.uid != 0 and (uid not in (-1, item.uid) or self.uid != item.uid):
            raise NotPermittedError(path, syscall=syscall, fd=fd)
        item.chown(uid, gid)

    def chown(self, path: PathArg, uid: int, gid: int) -> None:
        """Change owner and group; -1 keeps the current value."""
        item = self._resolve(path, 'chown').item
        self._chown(item, uid, gid, _fspath(path), 'chown')

    def lchown(self, path: PathArg, uid: int, gid: int) -> None:
        item = self._resolve(path, 'lchown', follow_symlinks=False).item
        self._chown(item, uid, gid, _fspath(path), 'lchown')

    def fchown(self, fd: int, uid: int, gid: int) -> None:
        item = self._descriptors.get(fd, 'fchown').item
        self._chown(item, uid, gid, None, 'fchown', fd=fd)

    def _utimes(self, item: Item, atime: Optional[float], mtime: Optional[float],
                path: Optional[str], syscall: str, fd: Optional[int] = None) -> None:
        is_owner = self.uid == 0 or self.uid == item.uid
        if atime is None and mtime is None:
            if not is_owner and not item.can_write(self.uid, self.gid):
                raise PermissionDeniedError(path, syscall=syscall, fd=fd)
        elif not is_owner:
            raise NotPermittedError(path, syscall=syscall, fd=fd)
        now = time.time()
        item.utimes(_first(atime, now), _first(mtime, now))

    def utimes(self, path: PathArg, atime: Optional[float] = None, mtime: Optional[float] = None) -> None:
        """
        Set access and modification times. Omitted times become now.

        Setting explicit times needs ownership; touching to now only needs
        write permission.
        """
        item = self._resolve(path, 'utimes').item
        self._utimes(item, atime, mtime, _fspath(path), 'utimes')

    def futimes(self, fd: int, atime: Optional[float] = None, mtime: Optional[float] = None) -> None:
        item = self._descriptors.get(fd, 'futimes').item
        self._utimes(item, atime, mtime, None, 'futimes', fd=fd)

    def umask(self, mask: int) -> int:
        """Set the creation mask, returning the previous one."""
        previous = self._umask
        self._umask = mask & 0o777
        return previous

    # Directories

    def mkdir(self, path: PathArg, mode: int = 0o777, recursive: bool = False) -> Optional[str]:
        """
        Create a new directory.

        Args:
            path: Path for the new directory
            mode: Permission mode (the umask is applied)
            recursive: Create missing parents; an existing directory at
                ``path`` is not an error

        Returns:
            With ``recursive``, the first directory created (None if
            nothing was created); otherwise None
        """
        if recursive:
            return self._mkdir_recursive(_fspath(path), mode)

        resolution = self._resolve(path, 'mkdir', follow_symlinks=False, allow_missing=True)

        if resolution.exists:
            raise EntryExistsError(_fspath(path), syscall='mkdir')

        parent = self._check_parent_writable(resolution, _fspath(path), 'mkdir')

        directory = self._new_directory(mode)
        parent.add_item(resolution.name, directory)

        self._logger.debug(
            "Created directory",
            context={'path': resolution.path, 'ino': directory.ino}
        )
        return None

    def _mkdir_recursive(self, path: str, mode: int) -> Optional[str]:
        absolute = PathResolver.resolve_str(path, self._cwd)
        names = PathResolver.parse(absolute).components

        # Find the first missing component; everything before it must be
        # a directory.
        missing: Optional[Resolution] = None
        missing_index = len(names)
        for index in range(len(names)):
            prefix = '/' + '/'.join(names[:index + 1])
            resolution = self._resolve(prefix, 'mkdir', allow_missing=True)
            if not resolution.exists:
                missing, missing_index = resolution, index
                break
            if not resolution.item.is_directory:
                if index == len(names) - 1:
                    raise EntryExistsError(path, syscall='mkdir')
                raise NotDirectoryError(path, syscall='mkdir')

        if missing is None:
            return None

        parent = self._check_parent_writable(missing, path, 'mkdir')

        first = self._new_directory(mode)
        current = first
        for name in names[missing_index + 1:]:
            child = self._new_directory(mode)
            current.add_item(name, child)
            current = child
        parent.add_item(missing.name, first)

        self._logger.debug("Created directories", context={'path': absolute, 'first': missing.path})
        return missing.path

    def rmdir(self, path: PathArg) -> None:
        """
        Delete an empty directory.

        Raises:
            EntryNotFoundError, NotDirectoryError, DirectoryNotEmptyError,
            PermissionDeniedError, or InvalidArgumentError for the root and
            paths ending in ``.``/``..``
        """
        path = _fspath(path)
        resolution = self._resolve(path, 'rmdir', follow_symlinks=False)
        item = resolution.item

        if not item.is_directory:
            raise NotDirectoryError(path, syscall='rmdir')

        parent = self._check_parent_writable(resolution, path, 'rmdir')

        if not item.is_empty():
            raise DirectoryNotEmptyError(path, syscall='rmdir')

        parent.remove_item(resolution.name)

        self._logger.debug("Removed directory", context={'path': resolution.path})

    def readdir(self, path: PathArg) -> List[str]:
        """
        List directory contents.

        Returns:
            Entry names in insertion order (no ``.``/``..``)
        """
        path = _fspath(path)
        item = self._resolve(path, 'scandir').item

        if not item.is_directory:
            raise NotDirectoryError(path, syscall='scandir')
        if not item.can_read(self.uid, self.gid):
            raise PermissionDeniedError(path, syscall='scandir')

        item.atime = time.time()
        return item.list_names()

    def chdir(self, path: PathArg) -> None:
        """Change the working directory used for relative paths."""
        path = _fspath(path)
        resolution = self._resolve(path, 'chdir')

        if not resolution.item.is_directory:
            raise NotDirectoryError(path, syscall='chdir')
        if not resolution.item.can_execute(self.uid, self.gid):
            raise PermissionDeniedError(path, syscall='chdir')

        self._cwd = resolution.path

    def getcwd(self) -> str:
        return self._cwd

    def mkdtemp(self, prefix: PathArg) -> str:
        """
        Create a uniquely named directory (mode 0o700).

        Six characters are appended to ``prefix``; names are derived from a
        per-instance counter so runs are reproducible.
        """
        prefix = _fspath(prefix)
        while True:
            self._temp_counter += 1
            candidate = f"{prefix}{self._temp_counter:06x}"
            resolution = self._resolve(candidate, 'mkdtemp', follow_symlinks=False, allow_missing=True)
            if not resolution.exists:
                break

        parent = self._check_parent_writable(resolution, candidate, 'mkdtemp')
        parent.add_item(resolution.name, self._new_directory(0o700))
        return candidate

    # Links and names

    def unlink(self, path: PathArg) -> None:
        """
        Delete a file or symbolic link. A final symlink is removed itself,
        not its target.
        """
        path = _fspath(path)
        resolution = self._resolve(path, 'unlink', follow_symlinks=False)

        if resolution.item.is_directory:
            raise IsDirectoryError(path, syscall='unlink')

        parent = self._check_parent_writable(resolution, path, 'unlink')
        parent.remove_item(resolution.name)

        self._logger.debug("Deleted file", context={'path': resolution.path})

    def symlink(self, target: str, path: PathArg) -> None:
        """
        Create a symbolic link at ``path`` storing ``target`` verbatim.
        """
        path = _fspath(path)
        target = _fspath(target)
        if not isinstance(target, str) or '\0' in target:
            raise InvalidArgumentError(path, syscall='symlink')

        resolution = self._resolve(path, 'symlink', follow_symlinks=False, allow_missing=True)
        if resolution.exists:
            raise EntryExistsError(path, syscall='symlink')

        parent = self._check_parent_writable(resolution, path, 'symlink')

        link = SymbolicLink(
            ino=self._allocator.allocate(),
            dev=self._allocator.dev,
            mode=DEFAULT_SYMLINK_MODE,
            uid=self.uid,
            gid=self.gid,
            target=target
        )
        parent.add_item(resolution.name, link)

        self._logger.debug("Created symlink", context={'path': resolution.path, 'target': target})

    def readlink(self, path: PathArg) -> str:
        """Return the stored target of a symbolic link, unresolved."""
        path = _fspath(path)
        item = self._resolve(path, 'readlink', follow_symlinks=False).item

        if not isinstance(item, SymbolicLink):
            raise InvalidArgumentError(path, syscall='readlink')

        item.atime = time.time()
        return item.target

    def rename(self, old_path: PathArg, new_path: PathArg) -> None:
        """
        Move ``old_path`` to ``new_path``, replacing a compatible target.

        A directory may only replace an empty directory, and a
        non-directory may only replace a non-directory. Nothing changes
        unless every check passes.
        """
        old_path = _fspath(old_path)
        new_path = _fspath(new_path)

        source = self._resolve(old_path, 'rename', follow_symlinks=False)
        target = self._resolve(new_path, 'rename', follow_symlinks=False, allow_missing=True)

        if source.parent is None or target.parent is None:
            raise InvalidArgumentError(old_path, syscall='rename')

        item = source.item
        if target.item is item:
            return

        if item.is_directory and PathResolver.is_within(target.path, source.path):
            raise InvalidArgumentError(old_path, syscall='rename')

        self._check_parent_writable(source, old_path, 'rename')
        self._check_parent_writable(target, new_path, 'rename')

        replaced = target.item
        if replaced is not None:
            if item.is_directory and not replaced.is_directory:
                raise NotDirectoryError(new_path, syscall='rename')
            if not item.is_directory and replaced.is_directory:
                raise IsDirectoryError(new_path, syscall='rename')
            if replaced.is_directory and not replaced.is_empty():
                raise DirectoryNotEmptyError(new_path, syscall='rename')

        source.parent.remove_item(source.name)
        if replaced is not None:
            target.parent.remove_item(target.name)
        target.parent.add_item(target.name, item)
        item.ctime = time.time()

        self._logger.debug(
            "Renamed",
            context={'from': source.path, 'to': target.path, 'ino': item.ino}
        )

    # Files and descriptors

    def open(
        self,
        path: PathArg,
        flags: Union[int, str, OpenMode] = 'r',
        mode: int = 0o666
    ) -> int:
        """
        Open a file.

        Args:
            path: Path to open
            flags: ``os.O_*`` flags, a mode string (``'r'``, ``'w+'``,
                ``'ax'``, ...) or an OpenMode
            mode: Permission bits for a newly created file (umask applied)

        Returns:
            File descriptor
        """
        path = _fspath(path)
        flags = parse_flags(flags)
        create = bool(flags & os.O_CREAT)
        exclusive = create and bool(flags & os.O_EXCL)
        follow = not exclusive and not (flags & O_NOFOLLOW)

        if self._descriptors.is_full():
            raise TooManyOpenFilesError(path, syscall='open')

        resolution = self._resolve(path, 'open', follow_symlinks=follow, allow_missing=create)
        item = resolution.item

        if item is None:
            if path.endswith('/'):
                raise IsDirectoryError(path, syscall='open')
            parent = self._check_parent_writable(resolution, path, 'open')
            item = File(
                ino=self._allocator.allocate(),
                dev=self._allocator.dev,
                mode=mode & ~self._umask,
                uid=self.uid,
                gid=self.gid
            )
            parent.add_item(resolution.name, item)
            self._logger.debug("Created file", context={'path': resolution.path, 'ino': item.ino})
        else:
            if exclusive:
                raise EntryExistsError(path, syscall='open')
            if item.is_symlink:
                raise LinkLoopError(path, syscall='open')
            if flags & O_DIRECTORY and not item.is_directory:
                raise NotDirectoryError(path, syscall='open')

            access = flags & (os.O_WRONLY | os.O_RDWR)
            if item.is_directory and (access or create):
                raise IsDirectoryError(path, syscall='open')
            if access != os.O_WRONLY and not item.can_read(self.uid, self.gid):
                raise PermissionDeniedError(path, syscall='open')
            if access and not item.can_write(self.uid, self.gid):
                raise PermissionDeniedError(path, syscall='open')

            if flags & os.O_TRUNC and access and isinstance(item, File):
                item.truncate(0)

        descriptor = self._descriptors.allocate(item, resolution.path, flags)

        self._logger.debug(
            "Opened",
            context={'path': resolution.path, 'fd': descriptor.fd, 'flags': oct(flags)}
        )
        return descriptor.fd

    def close(self, fd: int) -> None:
        """Close a file descriptor, freeing its number for reuse."""
        self._descriptors.release(fd, 'close')
        self._logger.debug("Closed", context={'fd': fd})

    def _readable(self, fd: int, syscall: str) -> Descriptor:
        descriptor = self._descriptors.get(fd, syscall)
        if not descriptor.can_read():
            raise BadDescriptorError(fd=fd, syscall=syscall)
        if descriptor.item.is_directory:
            raise IsDirectoryError(descriptor.path, syscall=syscall, fd=fd)
        return descriptor

    def _writable(self, fd: int, syscall: str) -> Descriptor:
        descriptor = self._descriptors.get(fd, syscall)
        if not descriptor.can_write():
            raise BadDescriptorError(fd=fd, syscall=syscall)
        return descriptor

    def read(self, fd: int, size: int = -1, position: Optional[int] = None) -> bytes:
        """
        Read from an open file.

        Args:
            fd: File descriptor
            size: Bytes to read (-1 for all remaining)
            position: Read at this offset without moving the descriptor
                position (pread); None reads at and advances the position

        Returns:
            Data read; shorter than ``size`` at end of content
        """
        descriptor = self._readable(fd, 'read')
        offset = descriptor.position if position is None else position
        if offset < 0:
            raise InvalidArgumentError(descriptor.path, syscall='read', fd=fd)

        data = descriptor.item.read(offset, size)

        if position is None:
            descriptor.position += len(data)
        return data

    def readinto(
        self,
        fd: int,
        buffer: Any,
        offset: int = 0,
        length: Optional[int] = None,
        position: Optional[int] = None
    ) -> int:
        """
        Read into ``buffer[offset:offset + length]``.

        Returns:
            Number of bytes transferred (0 at end of file, never negative)
        """
        view = memoryview(buffer).cast('B')
        if view.readonly:
            raise InvalidArgumentError(syscall='read', fd=fd)
        if length is None:
            length = len(view) - offset
        if offset < 0 or length < 0 or offset + length > len(view):
            raise InvalidArgumentError(syscall='read', fd=fd)

        data = self.read(fd, length, position)
        view[offset:offset + len(data)] = data
        return len(data)

    def write(self, fd: int, data: Union[bytes, bytearray, memoryview, str], position: Optional[int] = None) -> int:
        """
        Write to an open file.

        Writing past the end zero-fills the gap. With O_APPEND every write
        lands at the end of the file.

        Args:
            fd: File descriptor
            data: Bytes to write; ``str`` is encoded as UTF-8
            position: Write at this offset without moving the descriptor
                position (pwrite); None writes at and advances the position

        Returns:
            Number of bytes written
        """
        descriptor = self._writable(fd, 'write')
        item = descriptor.item

        if isinstance(data, str):
            data = data.encode('utf-8')
        data = bytes(data)

        if descriptor.is_append():
            offset = item.size
        else:
            offset = descriptor.position if position is None else position
        if offset < 0:
            raise InvalidArgumentError(descriptor.path, syscall='write', fd=fd)

        written = item.write(data, offset)

        if position is None:
            descriptor.position = offset + written
        return written

    def lseek(self, fd: int, offset: int, whence: int = os.SEEK_SET) -> int:
        """
        Reposition the descriptor.

        Args:
            fd: File descriptor
            offset: Offset
            whence: SEEK_SET, SEEK_CUR or SEEK_END

        Returns:
            New position
        """
        descriptor = self._descriptors.get(fd, 'lseek')

        if whence == os.SEEK_SET:
            new_position = offset
        elif whence == os.SEEK_CUR:
            new_position = descriptor.position + offset
        elif whence == os.SEEK_END:
            new_position = descriptor.item.size + offset
        else:
            raise InvalidArgumentError(descriptor.path, syscall='lseek', fd=fd)

        if new_position < 0:
            raise InvalidArgumentError(descriptor.path, syscall='lseek', fd=fd)

        descriptor.position = new_position
        return new_position

    def fsync(self, fd: int) -> None:
        self._descriptors.get(fd, 'fsync')

    def fdatasync(self, fd: int) -> None:
        self._descriptors.get(fd, 'fdatasync')

    def truncate(self, path: PathArg, length: int = 0) -> None:
        """Set a file's length, zero-padding when it grows."""
        path = _fspath(path)
        if length < 0:
            raise InvalidArgumentError(path, syscall='truncate')

        item = self._resolve(path, 'truncate').item

        if item.is_directory:
            raise IsDirectoryError(path, syscall='truncate')
        if not item.can_write(self.uid, self.gid):
            raise PermissionDeniedError(path, syscall='truncate')

        item.truncate(length)

    def ftruncate(self, fd: int, length: int = 0) -> None:
        descriptor = self._descriptors.get(fd, 'ftruncate')
        if length < 0 or not descriptor.can_write():
            raise InvalidArgumentError(descriptor.path, syscall='ftruncate', fd=fd)
        descriptor.item.truncate(length)

    # Whole-file conveniences

    def read_file(self, path: PathArg, encoding: Optional[str] = None) -> Union[bytes, str]:
        """Read a whole file through a descriptor; decode if ``encoding`` is given."""
        fd = self.open(path, 'r')
        try:
            data = self.read(fd)
        finally:
            self.close(fd)
        return data.decode(encoding) if encoding else data

    def write_file(
        self,
        path: PathArg,
        data: Union[bytes, str],
        mode: int = 0o666,
        append: bool = False
    ) -> None:
        """Replace (or append to) a file's content, creating it if needed."""
        fd = self.open(path, 'a' if append else 'w', mode)
        try:
            self.write(fd, data)
        finally:
            self.close(fd)

    def copy_file(self, src: PathArg, dest: PathArg, exclusive: bool = False) -> None:
        """
        Copy a file's content to ``dest``.

        Args:
            src: Source file
            dest: Destination; replaced unless ``exclusive``
            exclusive: Fail with EntryExistsError if ``dest`` exists
        """
        src = _fspath(src)
        dest = _fspath(dest)

        source = self._resolve(src, 'copyfile').item
        if source.is_directory:
            raise IsDirectoryError(src, syscall='copyfile')
        if not source.can_read(self.uid, self.gid):
            raise PermissionDeniedError(src, syscall='copyfile')

        target = self._resolve(dest, 'copyfile', allow_missing=True)
        if target.exists:
            if exclusive:
                raise EntryExistsError(dest, syscall='copyfile')
            if target.item.is_directory:
                raise IsDirectoryError(dest, syscall='copyfile')
            if not target.item.can_write(self.uid, self.gid):
                raise PermissionDeniedError(dest, syscall='copyfile')
            target.item.set_content(source.get_content())
            return

        parent = self._check_parent_writable(target, dest, 'copyfile')
        parent.add_item(target.name, File(
            ino=self._allocator.allocate(),
            dev=self._allocator.dev,
            mode=source.mode,
            uid=self.uid,
            gid=self.gid,
            content=bytearray(source.get_content())
        ))

    # Introspection

    def get_root(self) -> Directory:
        """A deep copy of the whole tree, for assertions."""
        return copy.deepcopy(self._root)

    def open_descriptors(self) -> List[int]:
        return self._descriptors.open_descriptors()

    def get_stats(self) -> dict[str, Any]:
        """Get filesystem statistics."""
        items = 0
        total_size = 0
        pending: List[Item] = [self._root]
        while pending:
            item = pending.pop()
            items += 1
            if isinstance(item, Directory):
                pending.extend(child for _, child in item.list_items())
            elif isinstance(item, File):
                total_size += item.size

        return {
            'total_items': items,
            'open_files': len(self._descriptors),
            'max_open_files': self._descriptors.max_open_files,
            'total_size': total_size,
            'cwd': self._cwd,
        }
