"""
Syscall Binding Module

Dispatches syscall-shaped calls to a FileSystem and turns raised
filesystem errors into errno-coded results, which is what an
interception adapter needs to emulate the host's calls.
"""

import os
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from .syscall_table import PATH_ARGUMENT, SYSCALL_NAMES, SyscallNumber
from mockfs.core.registry import Subsystem, SubsystemState
from mockfs.exceptions import FileSystemException, SessionStateError
from mockfs.filesystem.path_resolver import PathResolver

ENOSYS = 38


@dataclass
class SyscallResult:
    """Result of a system call."""
    success: bool
    return_value: Any
    error: Optional[str] = None
    error_code: int = 0
    excluded: bool = False


class Binding(Subsystem):
    """
    Syscall Binding.

    Routes calls by number or name to the filesystem. Calls whose path
    argument lies under an excluded prefix are handed to the exclude
    binding when one is configured, or come back with ``excluded=True``
    so the adapter can run the host call instead.

    Example:
        >>> binding = Binding(filesystem)
        >>> binding.initialize()
        >>> result = binding.dispatch(SyscallNumber.OPEN, '/tmp/foo.txt', 'r')
        >>> result.return_value
        3
    """

    def __init__(
        self,
        filesystem: Any,
        exclude_paths: Optional[list[str]] = None,
        exclude_binding: Any = None
    ):
        super().__init__('binding')
        self._filesystem = filesystem
        self._handlers: dict[str, Callable] = {}

        if exclude_paths is None:
            exclude_paths = filesystem.exclude_paths
        if exclude_binding is None:
            exclude_binding = filesystem.exclude_binding

        cwd = filesystem.getcwd()
        self.exclude_paths = [PathResolver.resolve_str(p, cwd) for p in exclude_paths]
        self.exclude_binding = exclude_binding

    @property
    def filesystem(self) -> Any:
        return self._filesystem

    def initialize(self) -> None:
        """Initialize the binding."""
        self._register_handlers()

        self.set_state(SubsystemState.INITIALIZED)
        self._logger.info(
            "Syscall binding initialized",
            context={'handlers': len(self._handlers), 'excluded': len(self.exclude_paths)}
        )

    def _register_handlers(self) -> None:
        """Register all syscall handlers."""
        fs = self._filesystem
        self._handlers = {
            "read": fs.read,
            "write": fs.write,
            "open": fs.open,
            "close": fs.close,
            "lseek": fs.lseek,
            "pread": fs.read,
            "pwrite": fs.write,
            "fsync": fs.fsync,
            "fdatasync": fs.fdatasync,
            "ftruncate": fs.ftruncate,
            "stat": fs.stat,
            "fstat": fs.fstat,
            "lstat": fs.lstat,
            "access": fs.access,
            "chmod": fs.chmod,
            "fchmod": fs.fchmod,
            "chown": fs.chown,
            "fchown": fs.fchown,
            "lchown": fs.lchown,
            "umask": fs.umask,
            "utimes": fs.utimes,
            "readdir": fs.readdir,
            "getcwd": fs.getcwd,
            "chdir": fs.chdir,
            "mkdir": fs.mkdir,
            "rmdir": fs.rmdir,
            "truncate": fs.truncate,
            "rename": fs.rename,
            "unlink": fs.unlink,
            "symlink": fs.symlink,
            "readlink": fs.readlink,
            "copyfile": fs.copy_file,
            "exists": fs.exists,
            "futimes": fs.futimes,
            "mkdtemp": fs.mkdtemp,
            "readinto": fs.readinto,
            "realpath": fs.realpath,
        }

    def register_handler(self, name: str, handler: Callable) -> None:
        """Register a handler for a syscall name."""
        self._handlers[name] = handler

    def stop(self) -> None:
        """Stop the binding; later dispatches raise SessionStateError."""
        self.set_state(SubsystemState.STOPPED)

    @staticmethod
    def syscall_name(syscall: Union[int, str]) -> str:
        """Name for a syscall number or name."""
        if isinstance(syscall, str):
            return syscall
        try:
            return SYSCALL_NAMES[SyscallNumber(syscall)]
        except ValueError:
            return f"unknown({syscall})"

    def is_excluded(self, path: Any) -> bool:
        """Whether ``path`` lies under one of the excluded prefixes."""
        if not self.exclude_paths:
            return False
        if isinstance(path, os.PathLike):
            path = os.fspath(path)
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        if not isinstance(path, str) or not path or '\0' in path:
            return False

        absolute = PathResolver.resolve_str(path, self._filesystem.getcwd())
        return any(PathResolver.is_within(absolute, prefix) for prefix in self.exclude_paths)

    def dispatch(self, syscall: Union[int, str], *args: Any, **kwargs: Any) -> SyscallResult:
        """
        Dispatch a system call.

        Args:
            syscall: SyscallNumber (or its int value) or call name
            *args: Positional arguments of the filesystem operation
            **kwargs: Keyword arguments of the filesystem operation

        Returns:
            SyscallResult; filesystem errors are reported through
            ``error``/``error_code`` rather than raised

        Raises:
            SessionStateError: If the binding has been stopped
        """
        if self.state == SubsystemState.STOPPED:
            raise SessionStateError("Binding is no longer active", state=self.state.name)

        name = self.syscall_name(syscall)

        self._logger.debug(
            f"Syscall: {name}",
            context={'args': str(args)[:50]}
        )

        handler = self._handlers.get(name)

        if handler is None:
            self._logger.warning(f"Unknown syscall: {syscall}")
            return SyscallResult(
                success=False,
                return_value=-1,
                error=f"Unknown syscall: {syscall}",
                error_code=ENOSYS
            )

        index = PATH_ARGUMENT.get(name)
        if index is not None and index < len(args) and self.is_excluded(args[index]):
            if self.exclude_binding is not None:
                return self.exclude_binding.dispatch(syscall, *args, **kwargs)
            return SyscallResult(success=False, return_value=None, excluded=True)

        try:
            result = handler(*args, **kwargs)
        except FileSystemException as e:
            self._logger.debug(
                f"Syscall error: {name}",
                context={'error': str(e), 'code': e.code}
            )
            return SyscallResult(
                success=False,
                return_value=-1,
                error=str(e),
                error_code=e.error_code
            )

        return SyscallResult(success=True, return_value=0 if result is None else result)
