"""
mockfs Virtual File System Module

Provides the simulated filesystem:
- Hierarchical item tree (files, directories, symbolic links)
- Path resolution with symlink expansion
- Descriptor table
- Declarative tree builder
- POSIX-like permissions
"""

from .item import Item, File, Directory, SymbolicLink, FileType, Permission
from .path_resolver import PathResolver, ParsedPath, Resolution, TreeWalker
from .descriptor import Descriptor, DescriptorTable, OpenMode, parse_flags
from .builder import TreeBuilder, file, directory, symlink
from .vfs import FileSystem, StatResult

__all__ = [
    # Items
    'Item',
    'File',
    'Directory',
    'SymbolicLink',
    'FileType',
    'Permission',
    # Path Resolver
    'PathResolver',
    'ParsedPath',
    'Resolution',
    'TreeWalker',
    # Descriptors
    'Descriptor',
    'DescriptorTable',
    'OpenMode',
    'parse_flags',
    # Builder
    'TreeBuilder',
    'file',
    'directory',
    'symlink',
    # VFS
    'FileSystem',
    'StatResult',
]
