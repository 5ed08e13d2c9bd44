"""
mockfs Core Tests

Exceptions, logging and configuration.

Run with: python -m pytest mockfs/tests -v
Or: python -m unittest discover mockfs/tests
"""

import errno
import json
import logging
import os
import sys
import tempfile
import unittest


class TestExceptions(unittest.TestCase):
    """Test the exception hierarchy."""

    def test_filesystem_exception(self):
        """Test errno, code and message of a filesystem error."""
        from mockfs.exceptions import EntryNotFoundError

        exc = EntryNotFoundError('/missing', syscall='stat')

        self.assertEqual(exc.errno, errno.ENOENT)
        self.assertEqual(exc.error_code, errno.ENOENT)
        self.assertEqual(exc.code, 'ENOENT')
        self.assertEqual(exc.path, '/missing')
        self.assertEqual(exc.filename, '/missing')
        self.assertEqual(exc.syscall, 'stat')
        self.assertEqual(
            str(exc),
            "[Error ENOENT] no such file or directory, stat '/missing'"
        )

    def test_builtin_bases(self):
        """Test that errors can be caught as the matching builtin OSError."""
        from mockfs.exceptions import (
            EntryExistsError,
            EntryNotFoundError,
            IsDirectoryError,
            NotDirectoryError,
            NotPermittedError,
            PermissionDeniedError,
        )

        self.assertIsInstance(EntryNotFoundError(), FileNotFoundError)
        self.assertIsInstance(NotDirectoryError(), NotADirectoryError)
        self.assertIsInstance(IsDirectoryError(), IsADirectoryError)
        self.assertIsInstance(EntryExistsError(), FileExistsError)
        self.assertIsInstance(PermissionDeniedError(), PermissionError)
        self.assertIsInstance(NotPermittedError(), PermissionDeniedError)
        self.assertEqual(NotPermittedError().errno, errno.EPERM)

    def test_descriptor_error_message(self):
        """Test that descriptor errors name the fd instead of a path."""
        from mockfs.exceptions import BadDescriptorError

        exc = BadDescriptorError(fd=7, syscall='read')

        self.assertEqual(exc.errno, errno.EBADF)
        self.assertEqual(exc.context['fd'], 7)
        self.assertIn('(fd=7)', str(exc))

    def test_error_kinds(self):
        """Test that every kind maps to a real errno."""
        from mockfs.exceptions import ErrorKind

        for kind in ErrorKind:
            self.assertEqual(kind.errno, getattr(errno, kind.value))
            self.assertTrue(kind.description)

    def test_session_exceptions(self):
        """Test session exceptions."""
        from mockfs.exceptions import ConfigValidationError, SessionStateError

        exc = SessionStateError("Session already disposed", state="DISPOSED")
        self.assertEqual(exc.error_code, 1001)
        self.assertEqual(exc.state, "DISPOSED")
        self.assertIn("1001", str(exc))

        exc = ConfigValidationError("Invalid configuration key: a.b", key="a.b")
        self.assertEqual(exc.error_code, 1002)
        self.assertEqual(exc.key, "a.b")


class TestLogger(unittest.TestCase):
    """Test the logging system."""

    def test_logger_creation(self):
        """Test logger creation and singleton."""
        from mockfs.logger import Logger, get_logger

        log1 = Logger('test1')
        log2 = get_logger('test1')

        self.assertIs(log1, log2)  # Same subsystem = same instance
        self.assertEqual(log1.subsystem, 'test1')

    def test_log_levels(self):
        """Test log level ordering."""
        from mockfs.logger import LogLevel

        self.assertTrue(LogLevel.ERROR > LogLevel.INFO)
        self.assertTrue(LogLevel.DEBUG < LogLevel.WARNING)
        self.assertEqual(LogLevel.DEBUG, logging.DEBUG)

    def test_formatter(self):
        """Test that subsystem and context are rendered."""
        from mockfs.logger import LogFormatter

        record = logging.LogRecord(
            'mockfs.filesystem', logging.DEBUG, __file__, 1,
            'Created directory', None, None
        )
        record.subsystem = 'filesystem'
        record.context = {'path': '/a', 'ino': 3}

        line = LogFormatter(use_colors=False).format(record)

        self.assertIn('DEBUG', line)
        self.assertIn('[filesystem]', line)
        self.assertIn('Created directory', line)
        self.assertIn('{path=/a ino=3}', line)

    def test_context_reaches_records(self):
        """Test that context dicts are attached to emitted records."""
        from mockfs.logger import get_logger

        with self.assertLogs('mockfs.test2', level='INFO') as captured:
            get_logger('test2').info("Hello", context={'key': 'value'})

        record = captured.records[0]
        self.assertEqual(record.subsystem, 'test2')
        self.assertEqual(record.context, {'key': 'value'})

    def test_initialize_console(self):
        """Test that initialize attaches a console handler once."""
        import io
        from unittest import mock
        from mockfs.logger import Logger, LogLevel, get_logger

        root_logger = logging.getLogger('mockfs')
        saved = (Logger._initialized, root_logger.level, list(root_logger.handlers))
        Logger._initialized = False

        try:
            with mock.patch('sys.stdout', new_callable=io.StringIO) as output:
                Logger.initialize(level=LogLevel.INFO, use_colors=False)
                Logger.initialize(level=LogLevel.DEBUG)

                get_logger('test3').debug("Hidden")
                get_logger('test3').warning("Shown", context={'fd': 3})

            self.assertEqual(len(root_logger.handlers), len(saved[2]) + 1)
            self.assertNotIn('Hidden', output.getvalue())
            self.assertIn('WARNING', output.getvalue())
            self.assertIn('[test3] Shown {fd=3}', output.getvalue())
        finally:
            root_logger.handlers = saved[2]
            root_logger.setLevel(saved[1])
            Logger._initialized = saved[0]


class TestConfig(unittest.TestCase):
    """Test the configuration system."""

    def tearDown(self):
        from mockfs.core.config_loader import ConfigLoader

        ConfigLoader().reset()

    def test_default_config(self):
        """Test default configuration values."""
        from mockfs.core.config_loader import Config

        config = Config()

        self.assertEqual(config.filesystem.max_open_files, 1024)
        self.assertEqual(config.filesystem.max_symlinks, 40)
        self.assertEqual(config.filesystem.umask, 0o022)
        self.assertEqual(config.filesystem.dev, 8675309)
        self.assertTrue(config.session.create_cwd)
        self.assertTrue(config.session.create_tmp)
        self.assertEqual(config.session.exclude_paths, [])
        self.assertEqual(config.logging.level, "WARNING")

    def test_config_loader_singleton(self):
        """Test configuration loader singleton."""
        from mockfs.core.config_loader import ConfigLoader, get_config

        self.assertIs(ConfigLoader(), ConfigLoader())
        self.assertIs(get_config(), ConfigLoader().config)

    def test_dotted_get_set(self):
        """Test dot-notation access."""
        from mockfs.core.config_loader import ConfigLoader
        from mockfs.exceptions import ConfigValidationError

        loader = ConfigLoader()
        loader.set('filesystem.max_open_files', 8)

        self.assertEqual(loader.get('filesystem.max_open_files'), 8)
        self.assertIsNone(loader.get('filesystem.nothing'))
        self.assertEqual(loader.get('nothing.at.all', 'fallback'), 'fallback')

        with self.assertRaises(ConfigValidationError):
            loader.set('filesystem.nothing', 1)

    def test_load_dict_validation(self):
        """Test that unknown sections and keys are rejected."""
        from mockfs.core.config_loader import ConfigLoader
        from mockfs.exceptions import ConfigValidationError

        loader = ConfigLoader()

        with self.assertRaises(ConfigValidationError):
            loader.load_dict({'kernel': {}})

        with self.assertRaises(ConfigValidationError) as ctx:
            loader.load_dict({'filesystem': {'quantum': 100}})
        self.assertEqual(ctx.exception.key, 'filesystem.quantum')

        config = loader.load_dict({'filesystem': {'umask': 0o077}})
        self.assertEqual(config.filesystem.umask, 0o077)
        self.assertEqual(config.filesystem.max_open_files, 1024)

    def test_load_json_file(self):
        """Test loading configuration from a JSON file on the host."""
        from mockfs.core.config_loader import ConfigLoader
        from mockfs.exceptions import ConfigValidationError

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, 'mockfs.json')
            with open(path, 'w', encoding='utf-8') as f:
                json.dump({'session': {'create_tmp': False}}, f)

            config = ConfigLoader().load(path)
            self.assertFalse(config.session.create_tmp)

            broken = os.path.join(tmp, 'broken.json')
            with open(broken, 'w', encoding='utf-8') as f:
                f.write('{not json')

            with self.assertRaises(ConfigValidationError):
                ConfigLoader().load(broken)

        with self.assertRaises(ConfigValidationError):
            ConfigLoader().load('/definitely/not/here.json')

    def test_to_dict(self):
        """Test configuration export."""
        from mockfs.core.config_loader import ConfigLoader

        data = ConfigLoader().to_dict()

        self.assertEqual(data['filesystem']['max_symlinks'], 40)
        self.assertEqual(data['session']['exclude_paths'], [])

    def test_config_drives_filesystem(self):
        """Test that configured limits apply to new filesystems."""
        import mockfs
        from mockfs.core.config_loader import ConfigLoader

        ConfigLoader().set('filesystem.max_open_files', 1)
        fs = mockfs.create({'/a': '', '/b': ''}, cwd='/', create_cwd=False, create_tmp=False)

        fs.open('/a')
        with self.assertRaises(mockfs.TooManyOpenFilesError):
            fs.open('/b')

        # Explicit options win over configuration
        fs = mockfs.create({'/a': ''}, max_open_files=5, cwd='/', create_cwd=False, create_tmp=False)
        self.assertEqual(fs.get_stats()['max_open_files'], 5)


class TestLifecycle(unittest.TestCase):
    """Test the subsystem base class."""

    def test_subsystem_states(self):
        """Test state transitions and health check."""
        from mockfs.core.registry import Subsystem, SubsystemState

        class Dummy(Subsystem):
            def initialize(self):
                self.set_state(SubsystemState.INITIALIZED)

        dummy = Dummy('dummy')
        self.assertEqual(dummy.state, SubsystemState.CREATED)
        self.assertFalse(dummy.health_check())

        dummy.initialize()
        dummy.start()
        self.assertEqual(dummy.state, SubsystemState.RUNNING)
        self.assertTrue(dummy.health_check())

        dummy.stop()
        self.assertEqual(dummy.state, SubsystemState.STOPPED)
        self.assertFalse(dummy.health_check())
        self.assertEqual(dummy.logger.subsystem, 'dummy')


def run_tests():
    """Run all tests."""
    loader = unittest.TestLoader()
    suite = loader.loadTestsFromModule(sys.modules[__name__])

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    return 0 if result.wasSuccessful() else 1


if __name__ == '__main__':
    sys.exit(run_tests())
