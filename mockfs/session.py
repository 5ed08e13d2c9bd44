"""
mockfs Session

A session owns one filesystem and its syscall binding for the duration of
a test. Interception of real filesystem calls is left to an adapter: the
session hands the adapter its binding on start and asks it to uninstall on
dispose.

Example:
    >>> with MockSession({'/tmp/foo.txt': 'hello'}) as session:
    ...     session.filesystem.read_file('/tmp/foo.txt', encoding='utf-8')
    'hello'
"""

from enum import Enum, auto
from typing import Any, Mapping, Optional, Protocol, runtime_checkable

from mockfs.core.config_loader import get_config
from mockfs.exceptions import SessionStateError
from mockfs.filesystem import Directory, FileSystem
from mockfs.logger import Logger, LogLevel, get_logger
from mockfs.syscalls import Binding


class SessionState(Enum):
    """Session lifecycle state."""
    CREATED = auto()
    RUNNING = auto()
    DISPOSED = auto()


@runtime_checkable
class InterceptionAdapter(Protocol):
    """Routes a host's filesystem calls to a binding while installed."""

    def install(self, binding: Binding) -> None:
        ...

    def uninstall(self) -> None:
        ...


class MockSession:
    """
    Lifecycle of one mocked filesystem.

    Args:
        config: Tree configuration (see ``mockfs.filesystem.builder``)
        adapter: Optional InterceptionAdapter to install on start
        **options: Keyword options of ``FileSystem.__init__``
    """

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        adapter: Optional[InterceptionAdapter] = None,
        **options: Any
    ):
        self._config = config
        self._adapter = adapter
        self._options = options
        self._state = SessionState.CREATED
        self._filesystem: Optional[FileSystem] = None
        self._binding: Optional[Binding] = None
        self._logger = get_logger('session')

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def filesystem(self) -> FileSystem:
        """The session's filesystem; only available while running."""
        self._require_running()
        return self._filesystem

    @property
    def binding(self) -> Binding:
        self._require_running()
        return self._binding

    def _require_running(self) -> None:
        if self._state != SessionState.RUNNING:
            raise SessionStateError(
                f"Session is {self._state.name.lower()}, not running",
                state=self._state.name
            )

    def _configure_logging(self) -> None:
        logging_config = get_config().logging
        if logging_config.console_output or logging_config.log_file:
            Logger.initialize(
                level=LogLevel[logging_config.level.upper()],
                log_file=logging_config.log_file,
                console_output=logging_config.console_output
            )

    def start(self) -> 'MockSession':
        """
        Build the filesystem and binding, then install the adapter.

        Raises:
            SessionStateError: If the session was already started
        """
        if self._state != SessionState.CREATED:
            raise SessionStateError(
                "Session can only be started once",
                state=self._state.name
            )

        self._configure_logging()

        filesystem = FileSystem.create(self._config, **self._options)
        binding = Binding(filesystem)
        binding.initialize()
        binding.start()

        self._filesystem = filesystem
        self._binding = binding
        self._state = SessionState.RUNNING

        if self._adapter is not None:
            self._adapter.install(binding)

        self._logger.info(
            "Session started",
            context={'adapter': type(self._adapter).__name__ if self._adapter else None}
        )
        return self

    def dispose(self) -> None:
        """
        Tear the session down: uninstall the adapter, stop the binding and
        close every open descriptor. Disposing twice is a no-op.
        """
        if self._state == SessionState.DISPOSED:
            return

        if self._state == SessionState.CREATED:
            self._state = SessionState.DISPOSED
            return

        try:
            if self._adapter is not None:
                self._adapter.uninstall()
        except Exception as e:
            self._logger.exception("Adapter failed to uninstall", e)
            raise
        finally:
            self._binding.stop()
            self._filesystem.cleanup()
            self._filesystem.stop()
            self._state = SessionState.DISPOSED

        self._logger.info("Session disposed")

    def get_root(self) -> Directory:
        """Deep copy of the mocked tree."""
        return self.filesystem.get_root()

    def __enter__(self) -> 'MockSession':
        return self.start()

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.dispose()
