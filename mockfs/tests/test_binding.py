"""
Syscall Binding Tests
"""

import errno
import unittest

import mockfs
from mockfs.core.registry import SubsystemState
from mockfs.exceptions import SessionStateError
from mockfs.syscalls import SYSCALL_NAMES, Binding, SyscallNumber, SyscallResult


class RecordingBinding:
    """Stands in for the host's own binding."""

    def __init__(self):
        self.calls = []

    def dispatch(self, syscall, *args, **kwargs):
        self.calls.append((syscall, args, kwargs))
        return SyscallResult(success=True, return_value='host')


def make_binding(config=None, **options):
    options.setdefault('cwd', '/')
    options.setdefault('create_cwd', False)
    options.setdefault('create_tmp', False)
    binding = Binding(mockfs.create(config, **options))
    binding.initialize()
    binding.start()
    return binding


class TestSyscallTable(unittest.TestCase):
    """Test the syscall numbering."""

    def test_linux_numbers(self):
        """Test a few well-known x86_64 numbers."""
        self.assertEqual(SyscallNumber.READ, 0)
        self.assertEqual(SyscallNumber.OPEN, 2)
        self.assertEqual(SyscallNumber.STAT, 4)
        self.assertEqual(SyscallNumber.MKDIR, 83)
        self.assertEqual(SyscallNumber.RENAME, 82)

    def test_every_number_has_a_name(self):
        """Test that the name table covers the enum."""
        for number in SyscallNumber:
            self.assertIn(number, SYSCALL_NAMES)


class TestBinding(unittest.TestCase):
    """Test dispatching to the filesystem."""

    def test_dispatch_by_number_and_name(self):
        """Test a write/read cycle through the binding."""
        binding = make_binding()

        opened = binding.dispatch(SyscallNumber.OPEN, '/f', 'w+')
        self.assertTrue(opened.success)
        fd = opened.return_value
        self.assertEqual(fd, 3)

        written = binding.dispatch(SyscallNumber.WRITE, fd, b'hello')
        self.assertEqual(written.return_value, 5)

        self.assertEqual(binding.dispatch('pread', fd, 5, 0).return_value, b'hello')
        self.assertEqual(binding.dispatch(int(SyscallNumber.CLOSE), fd).return_value, 0)

        result = binding.dispatch('stat', '/f')
        self.assertTrue(result.success)
        self.assertEqual(result.return_value.st_size, 5)

        self.assertEqual(binding.dispatch('mkdir', '/d', recursive=True).return_value, '/d')

    def test_errors_become_results(self):
        """Test errno-coded failures."""
        binding = make_binding()

        result = binding.dispatch(SyscallNumber.STAT, '/missing')

        self.assertFalse(result.success)
        self.assertEqual(result.return_value, -1)
        self.assertEqual(result.error_code, errno.ENOENT)
        self.assertIn('ENOENT', result.error)
        self.assertFalse(result.excluded)

        result = binding.dispatch(SyscallNumber.CLOSE, 42)
        self.assertEqual(result.error_code, errno.EBADF)

    def test_unknown_syscall(self):
        """Test ENOSYS for unknown calls."""
        binding = make_binding()

        self.assertEqual(binding.dispatch(999).error_code, errno.ENOSYS)

        with self.assertLogs('mockfs.binding', level='WARNING') as captured:
            self.assertEqual(binding.dispatch('fork').error_code, errno.ENOSYS)
        self.assertIn('Unknown syscall: fork', captured.output[0])

    def test_register_handler(self):
        """Test adding a handler."""
        binding = make_binding()
        binding.register_handler('ping', lambda: 'pong')

        self.assertEqual(binding.dispatch('ping').return_value, 'pong')

    def test_stopped_binding(self):
        """Test that a stopped binding refuses calls."""
        binding = make_binding()
        binding.stop()

        self.assertEqual(binding.state, SubsystemState.STOPPED)
        with self.assertRaises(SessionStateError):
            binding.dispatch('getcwd')


class TestExclusion(unittest.TestCase):
    """Test excluded path prefixes."""

    def test_excluded_without_binding(self):
        """Test that excluded calls are flagged for the adapter."""
        binding = make_binding({'/host/x': 'mock'}, exclude_paths=['/host'])

        result = binding.dispatch('stat', '/host/x')
        self.assertTrue(result.excluded)
        self.assertFalse(result.success)

        self.assertTrue(binding.is_excluded('/host'))
        self.assertFalse(binding.is_excluded('/hostile'))
        self.assertFalse(binding.dispatch('stat', '/hostile').excluded)

    def test_excluded_with_binding(self):
        """Test forwarding to the exclude binding."""
        host = RecordingBinding()
        binding = make_binding(exclude_paths=['/real'], exclude_binding=host)

        result = binding.dispatch(SyscallNumber.OPEN, '/real/file', 'r')

        self.assertEqual(result.return_value, 'host')
        self.assertEqual(host.calls, [(SyscallNumber.OPEN, ('/real/file', 'r'), {})])

        # Descriptor calls are never excluded
        self.assertEqual(binding.dispatch('close', 3).error_code, errno.EBADF)

    def test_symlink_checks_link_path(self):
        """Test that symlink is routed on its link path, not its target."""
        binding = make_binding(exclude_paths=['/real'])

        self.assertTrue(binding.dispatch('symlink', '/anything', '/real/link').excluded)
        self.assertTrue(binding.dispatch('symlink', '/real/target', '/link').success)

    def test_relative_exclusions(self):
        """Test that relative prefixes use the working directory."""
        binding = make_binding({'/work': {}}, cwd='/work', exclude_paths=['cache'])

        self.assertEqual(binding.exclude_paths, ['/work/cache'])
        self.assertTrue(binding.dispatch('mkdir', 'cache/x').excluded)


if __name__ == '__main__':
    unittest.main()
