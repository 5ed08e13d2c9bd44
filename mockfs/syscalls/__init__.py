"""
mockfs System Call Interface Module

Provides system call dispatching:
- System call table
- Filesystem binding
- Syscall results
"""

from .syscall_table import SyscallNumber, SYSCALL_NAMES
from .binding import Binding, SyscallResult

__all__ = [
    'SyscallNumber',
    'SYSCALL_NAMES',
    'Binding',
    'SyscallResult',
]
