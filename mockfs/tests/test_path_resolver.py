"""
Path Resolver Tests
"""

import unittest

from mockfs.exceptions import (
    EntryNotFoundError,
    InvalidArgumentError,
    LinkLoopError,
    NotDirectoryError,
    PermissionDeniedError,
)
from mockfs.filesystem.item import Directory, File, SymbolicLink
from mockfs.filesystem.path_resolver import PathResolver, TreeWalker


class TestPathResolver(unittest.TestCase):
    """Test lexical path helpers."""

    def test_normalize(self):
        """Test path normalization."""
        self.assertEqual(PathResolver.normalize('/home/../tmp/.'), '/tmp')
        self.assertEqual(PathResolver.normalize('//a///b/'), '/a/b')
        self.assertEqual(PathResolver.normalize('/..'), '/')
        self.assertEqual(PathResolver.normalize('../a/../b'), '../b')
        self.assertEqual(PathResolver.normalize('a/..'), '.')

    def test_join_and_split(self):
        """Test join, basename and dirname."""
        self.assertEqual(PathResolver.join('/home', 'user'), '/home/user')
        self.assertEqual(PathResolver.join('/home', '/etc'), '/etc')
        self.assertEqual(PathResolver.basename('/home/user/file.txt'), 'file.txt')
        self.assertEqual(PathResolver.dirname('/home/user/file.txt'), '/home/user')
        self.assertEqual(PathResolver.split('/a'), ('/', 'a'))

    def test_resolve_str(self):
        """Test resolving relative paths against a working directory."""
        self.assertEqual(PathResolver.resolve_str('b/c', '/a'), '/a/b/c')
        self.assertEqual(PathResolver.resolve_str('../x', '/a/b'), '/a/x')
        self.assertEqual(PathResolver.resolve_str('/abs', '/a'), '/abs')

    def test_is_within(self):
        """Test prefix containment on whole components."""
        self.assertTrue(PathResolver.is_within('/a/b', '/a'))
        self.assertTrue(PathResolver.is_within('/a', '/a'))
        self.assertFalse(PathResolver.is_within('/ab', '/a'))
        self.assertTrue(PathResolver.is_within('/anything', '/'))


class TestTreeWalker(unittest.TestCase):
    """Test resolution against a live tree."""

    def setUp(self):
        # /
        # ├── dir/
        # │   ├── file.txt
        # │   └── rel -> file.txt
        # ├── abs -> /dir
        # ├── dangling -> /nowhere
        # ├── loop1 -> /loop2
        # └── loop2 -> /loop1
        self.root = Directory(ino=1)
        self.dir = Directory(ino=2)
        self.file = File(ino=3, content=bytearray(b'data'))
        self.root.add_item('dir', self.dir)
        self.dir.add_item('file.txt', self.file)
        self.dir.add_item('rel', SymbolicLink(ino=4, target='file.txt'))
        self.root.add_item('abs', SymbolicLink(ino=5, target='/dir'))
        self.root.add_item('dangling', SymbolicLink(ino=6, target='/nowhere'))
        self.root.add_item('loop1', SymbolicLink(ino=7, target='/loop2'))
        self.root.add_item('loop2', SymbolicLink(ino=8, target='/loop1'))

        self.cwd = '/'
        self.walker = TreeWalker(self.root, cwd=lambda: self.cwd)

    def test_resolves_file(self):
        """Test a plain absolute path."""
        resolution = self.walker.resolve('/dir/file.txt')

        self.assertIs(resolution.item, self.file)
        self.assertIs(resolution.parent, self.dir)
        self.assertEqual(resolution.name, 'file.txt')
        self.assertEqual(resolution.path, '/dir/file.txt')

    def test_relative_path_uses_cwd(self):
        """Test that relative paths start at the working directory."""
        self.cwd = '/dir'

        self.assertIs(self.walker.resolve('file.txt').item, self.file)
        self.assertIs(self.walker.resolve('./file.txt').item, self.file)
        self.assertIs(self.walker.resolve('../dir/file.txt').item, self.file)

    def test_root_and_dot_paths(self):
        """Test paths that end on a directory without a parent entry."""
        resolution = self.walker.resolve('/')
        self.assertIs(resolution.item, self.root)
        self.assertIsNone(resolution.parent)
        self.assertEqual(resolution.path, '/')

        resolution = self.walker.resolve('/dir/.')
        self.assertIs(resolution.item, self.dir)
        self.assertIsNone(resolution.parent)
        self.assertEqual(resolution.path, '/dir')

        self.assertIs(self.walker.resolve('/../..').item, self.root)

    def test_symlinks(self):
        """Test relative, absolute and intermediate links."""
        self.assertIs(self.walker.resolve('/dir/rel').item, self.file)
        self.assertIs(self.walker.resolve('/abs/file.txt').item, self.file)
        self.assertEqual(self.walker.resolve('/abs/rel').path, '/dir/file.txt')

        # '..' applies to the physical location behind the link
        self.assertIs(self.walker.resolve('/abs/..').item, self.root)

    def test_final_symlink_not_followed(self):
        """Test lstat-style resolution."""
        resolution = self.walker.resolve('/abs', follow_symlinks=False)

        self.assertIsInstance(resolution.item, SymbolicLink)
        self.assertEqual(resolution.path, '/abs')

        # A trailing slash forces the final link to be followed
        resolution = self.walker.resolve('/abs/', follow_symlinks=False)
        self.assertIs(resolution.item, self.dir)

    def test_missing(self):
        """Test missing entries and allow_missing."""
        with self.assertRaises(EntryNotFoundError):
            self.walker.resolve('/nope')

        with self.assertRaises(EntryNotFoundError):
            self.walker.resolve('/dangling')

        resolution = self.walker.resolve('/dir/new', allow_missing=True)
        self.assertFalse(resolution.exists)
        self.assertIs(resolution.parent, self.dir)
        self.assertEqual(resolution.name, 'new')

        # Only the final segment may be missing
        with self.assertRaises(EntryNotFoundError):
            self.walker.resolve('/nope/new', allow_missing=True)

    def test_not_directory_takes_precedence(self):
        """Test that a file used as a directory is ENOTDIR, not ENOENT."""
        with self.assertRaises(NotDirectoryError):
            self.walker.resolve('/dir/file.txt/child')

        with self.assertRaises(NotDirectoryError):
            self.walker.resolve('/dir/file.txt/')

    def test_symlink_loop(self):
        """Test that link cycles end in ELOOP."""
        with self.assertRaises(LinkLoopError):
            self.walker.resolve('/loop1')
        with self.assertRaises(LinkLoopError):
            self.walker.resolve('/loop1/file')

        resolution = self.walker.resolve('/loop1', follow_symlinks=False)
        self.assertEqual(resolution.name, 'loop1')

    def test_link_target_trailing_slash(self):
        """Test that a target ending in '/' must name a directory."""
        self.root.add_item('to_file', SymbolicLink(ino=9, target='/dir/file.txt/'))
        self.root.add_item('to_dir', SymbolicLink(ino=10, target='dir/'))

        with self.assertRaises(NotDirectoryError):
            self.walker.resolve('/to_file')
        with self.assertRaises(NotDirectoryError):
            self.walker.resolve('/to_file', allow_missing=True)

        resolution = self.walker.resolve('/to_dir')
        self.assertIs(resolution.item, self.dir)
        self.assertEqual(resolution.path, '/dir')

        resolution = self.walker.resolve('/to_dir/file.txt')
        self.assertIs(resolution.item, self.file)

    def test_symlink_limit(self):
        """Test that long chains are bounded by max_symlinks."""
        for index in range(5):
            self.root.add_item(f'chain{index}', SymbolicLink(ino=100 + index, target=f'/chain{index + 1}'))
        self.root.add_item('chain5', SymbolicLink(ino=105, target='/dir'))

        self.assertIs(self.walker.resolve('/chain0').item, self.dir)

        short = TreeWalker(self.root, cwd=lambda: '/', max_symlinks=3)
        with self.assertRaises(LinkLoopError):
            short.resolve('/chain0')

    def test_search_permission(self):
        """Test that a directory without exec permission cannot be traversed."""
        self.dir.mode = 0o600
        self.dir.uid = 1000
        walker = TreeWalker(self.root, cwd=lambda: '/', uid=1000, gid=1000)

        with self.assertRaises(PermissionDeniedError):
            walker.resolve('/dir/file.txt')

        # The directory itself is still reachable
        self.assertIs(walker.resolve('/dir').item, self.dir)

    def test_invalid_paths(self):
        """Test empty, NUL-containing and non-string paths."""
        with self.assertRaises(EntryNotFoundError):
            self.walker.resolve('')

        with self.assertRaises(InvalidArgumentError):
            self.walker.resolve('/dir\0/file.txt')

        with self.assertRaises(InvalidArgumentError):
            self.walker.resolve(42)


if __name__ == '__main__':
    unittest.main()
