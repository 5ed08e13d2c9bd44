"""
Path Resolver Module

Two layers:

- ``PathResolver``: purely lexical helpers (parse, normalize, join, ...)
  that never look at the tree.
- ``TreeWalker``: walks a path segment by segment against a live tree,
  following symbolic links and checking search permission, and produces
  a ``Resolution`` or raises the matching filesystem error.
"""

from dataclasses import dataclass
from typing import Callable, Optional, List, Tuple

from mockfs.exceptions import (
    EntryNotFoundError,
    InvalidArgumentError,
    LinkLoopError,
    NotDirectoryError,
    PermissionDeniedError,
)
from .item import Directory, Item, SymbolicLink

# Spliced after the segments of a link target ending in '/'. Never a real
# segment, since segments cannot contain '/'.
_MUST_BE_DIRECTORY = '/'


@dataclass
class ParsedPath:
    """A parsed path with its components."""
    is_absolute: bool
    components: List[str]

    def __str__(self) -> str:
        if self.is_absolute:
            return '/' + '/'.join(self.components)
        return '/'.join(self.components) if self.components else '.'


class PathResolver:
    """
    Lexical path manipulation.

    Handles:
    - Absolute and relative paths
    - . and .. components
    - Path normalization
    """

    @staticmethod
    def parse(path: str) -> ParsedPath:
        """
        Parse a path into components, dropping empty and ``.`` segments.

        Args:
            path: Path string to parse

        Returns:
            ParsedPath with components
        """
        is_absolute = path.startswith('/')
        components = [c for c in path.split('/') if c and c != '.']
        return ParsedPath(is_absolute=is_absolute, components=components)

    @staticmethod
    def normalize(path: str) -> str:
        """
        Normalize a path by resolving . and .. lexically.

        Args:
            path: Path to normalize

        Returns:
            Normalized path string
        """
        parsed = PathResolver.parse(path)

        result: List[str] = []

        for component in parsed.components:
            if component == '..':
                if result and result[-1] != '..':
                    result.pop()
                elif not parsed.is_absolute:
                    result.append(component)
            else:
                result.append(component)

        if parsed.is_absolute:
            return '/' + '/'.join(result)
        return '/'.join(result) if result else '.'

    @staticmethod
    def join(*paths: str) -> str:
        """
        Join multiple path components.

        Args:
            *paths: Path components to join

        Returns:
            Joined, normalized path string
        """
        if not paths:
            return '.'

        result = paths[0]

        for path in paths[1:]:
            if path.startswith('/'):
                result = path
            else:
                result = result.rstrip('/') + '/' + path

        return PathResolver.normalize(result)

    @staticmethod
    def resolve_str(path: str, cwd: str = '/') -> str:
        """
        Lexically resolve a path against a working directory.

        Symbolic links are not consulted; see ``TreeWalker`` for that.

        Args:
            path: Path to resolve
            cwd: Current working directory

        Returns:
            Absolute normalized path
        """
        if PathResolver.is_absolute(path):
            return PathResolver.normalize(path)
        return PathResolver.normalize(cwd.rstrip('/') + '/' + path)

    @staticmethod
    def dirname(path: str) -> str:
        """Get the directory name of a path."""
        normalized = PathResolver.normalize(path)

        if normalized == '/':
            return '/'

        if '/' not in normalized:
            return '.'

        return normalized.rsplit('/', 1)[0] or '/'

    @staticmethod
    def basename(path: str) -> str:
        """Get the base name of a path."""
        normalized = PathResolver.normalize(path)

        if normalized == '/':
            return '/'

        return normalized.rsplit('/', 1)[-1]

    @staticmethod
    def split(path: str) -> Tuple[str, str]:
        """
        Split a path into directory and base name.

        Returns:
            Tuple of (dirname, basename)
        """
        return (PathResolver.dirname(path), PathResolver.basename(path))

    @staticmethod
    def is_absolute(path: str) -> bool:
        """Check if a path is absolute."""
        return path.startswith('/')

    @staticmethod
    def is_within(path: str, ancestor: str) -> bool:
        """Whether normalized ``path`` equals ``ancestor`` or lies below it."""
        if ancestor == '/':
            return True
        return path == ancestor or path.startswith(ancestor.rstrip('/') + '/')


@dataclass
class Resolution:
    """
    Outcome of walking a path.

    ``item`` is None only when the final segment is missing and the caller
    asked for ``allow_missing`` (creation operations). ``parent`` is None
    when the path resolved to the root or ended in ``.``/``..``.
    """
    item: Optional[Item]
    parent: Optional[Directory]
    name: str
    path: str

    @property
    def exists(self) -> bool:
        return self.item is not None

    @property
    def parent_path(self) -> str:
        return PathResolver.dirname(self.path)


class TreeWalker:
    """
    Resolves path strings against a live tree.

    Relative paths start from the working directory returned by ``cwd``.
    Each symbolic link expansion counts against ``max_symlinks``; the
    limit catches both cycles and overly long chains.
    """

    def __init__(
        self,
        root: Directory,
        cwd: Callable[[], str],
        uid: int = 0,
        gid: int = 0,
        max_symlinks: int = 40
    ):
        self.root = root
        self._cwd = cwd
        self.uid = uid
        self.gid = gid
        self.max_symlinks = max_symlinks

    def resolve(
        self,
        path: str,
        follow_symlinks: bool = True,
        allow_missing: bool = False,
        syscall: Optional[str] = None
    ) -> Resolution:
        """
        Walk ``path`` and return where it leads.

        Args:
            path: Absolute path, or path relative to the working directory
            follow_symlinks: Follow a symbolic link in the final position
                (stat-style). Intermediate links are always followed, and a
                trailing slash forces the final one to be followed too.
            allow_missing: Return a Resolution with ``item=None`` instead
                of failing when only the final segment is missing
            syscall: Operation name recorded on raised errors

        Raises:
            InvalidArgumentError: Path is not a string or contains NUL
            EntryNotFoundError: A component does not exist
            NotDirectoryError: A component used as a directory is not one
            PermissionDeniedError: Search permission denied on a directory
            LinkLoopError: Too many symbolic link expansions
        """
        if not isinstance(path, str) or '\0' in path:
            raise InvalidArgumentError(str(path), syscall=syscall)
        if path == '':
            raise EntryNotFoundError(path, syscall=syscall)

        trailing_slash = path.endswith('/') and path.strip('/') != ''

        if PathResolver.is_absolute(path):
            pending = self._segments(path)
        else:
            pending = self._segments(self._cwd()) + self._segments(path)

        # (name, directory) from the root down to the current directory
        stack: List[Tuple[str, Directory]] = [('', self.root)]
        expansions = 0

        while pending:
            segment = pending.pop(0)
            current = stack[-1][1]
            # Markers left over mean the final item must be a directory
            is_last = all(s == _MUST_BE_DIRECTORY for s in pending)
            must_be_directory = trailing_slash or bool(pending)

            if segment in ('.', _MUST_BE_DIRECTORY):
                continue

            if segment == '..':
                if len(stack) > 1:
                    stack.pop()
                continue

            if not current.can_execute(self.uid, self.gid):
                raise PermissionDeniedError(path, syscall=syscall)

            child = current.get_item(segment)

            if child is None:
                if is_last and allow_missing and not pending:
                    return Resolution(
                        item=None,
                        parent=current,
                        name=segment,
                        path=self._join(stack, segment)
                    )
                raise EntryNotFoundError(path, syscall=syscall)

            if isinstance(child, SymbolicLink) and (
                not is_last or follow_symlinks or must_be_directory
            ):
                expansions += 1
                if expansions > self.max_symlinks:
                    raise LinkLoopError(path, syscall=syscall)
                if child.target == '':
                    raise EntryNotFoundError(path, syscall=syscall)
                if PathResolver.is_absolute(child.target):
                    del stack[1:]
                expanded = self._segments(child.target)
                if child.target.endswith('/'):
                    expanded.append(_MUST_BE_DIRECTORY)
                pending = expanded + pending
                continue

            if is_last:
                if must_be_directory and not child.is_directory:
                    raise NotDirectoryError(path, syscall=syscall)
                return Resolution(
                    item=child,
                    parent=current,
                    name=segment,
                    path=self._join(stack, segment)
                )

            if not isinstance(child, Directory):
                raise NotDirectoryError(path, syscall=syscall)

            stack.append((segment, child))

        # Path ended on '/', '.', '..' or a link to '/': report the
        # directory without a parent entry.
        return Resolution(
            item=stack[-1][1],
            parent=None,
            name='',
            path=self._join(stack, '')
        )

    def _segments(self, path: str) -> List[str]:
        return [c for c in path.split('/') if c]

    @staticmethod
    def _join(stack: List[Tuple[str, Directory]], name: str) -> str:
        names = [n for n, _ in stack[1:]]
        if name:
            names.append(name)
        return '/' + '/'.join(names)
