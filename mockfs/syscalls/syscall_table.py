"""
Syscall Table Module

Defines the system call numbers (Linux x86_64 numbering) and the names
the binding dispatches on.
"""

from enum import IntEnum


class SyscallNumber(IntEnum):
    """System call numbers."""
    # Descriptors
    READ = 0
    WRITE = 1
    OPEN = 2
    CLOSE = 3
    LSEEK = 8
    PREAD64 = 17
    PWRITE64 = 18
    FSYNC = 74
    FDATASYNC = 75
    FTRUNCATE = 77

    # Metadata
    STAT = 4
    FSTAT = 5
    LSTAT = 6
    ACCESS = 21
    CHMOD = 90
    FCHMOD = 91
    CHOWN = 92
    FCHOWN = 93
    LCHOWN = 94
    UMASK = 95
    UTIMES = 235

    # Directories
    GETDENTS = 78
    GETCWD = 79
    CHDIR = 80
    MKDIR = 83
    RMDIR = 84

    # Names
    TRUNCATE = 76
    RENAME = 82
    UNLINK = 87
    SYMLINK = 88
    READLINK = 89


# Mapping of syscall numbers to names
SYSCALL_NAMES = {
    SyscallNumber.READ: "read",
    SyscallNumber.WRITE: "write",
    SyscallNumber.OPEN: "open",
    SyscallNumber.CLOSE: "close",
    SyscallNumber.LSEEK: "lseek",
    SyscallNumber.PREAD64: "pread",
    SyscallNumber.PWRITE64: "pwrite",
    SyscallNumber.FSYNC: "fsync",
    SyscallNumber.FDATASYNC: "fdatasync",
    SyscallNumber.FTRUNCATE: "ftruncate",
    SyscallNumber.STAT: "stat",
    SyscallNumber.FSTAT: "fstat",
    SyscallNumber.LSTAT: "lstat",
    SyscallNumber.ACCESS: "access",
    SyscallNumber.CHMOD: "chmod",
    SyscallNumber.FCHMOD: "fchmod",
    SyscallNumber.CHOWN: "chown",
    SyscallNumber.FCHOWN: "fchown",
    SyscallNumber.LCHOWN: "lchown",
    SyscallNumber.UMASK: "umask",
    SyscallNumber.UTIMES: "utimes",
    SyscallNumber.GETDENTS: "readdir",
    SyscallNumber.GETCWD: "getcwd",
    SyscallNumber.CHDIR: "chdir",
    SyscallNumber.MKDIR: "mkdir",
    SyscallNumber.RMDIR: "rmdir",
    SyscallNumber.TRUNCATE: "truncate",
    SyscallNumber.RENAME: "rename",
    SyscallNumber.UNLINK: "unlink",
    SyscallNumber.SYMLINK: "symlink",
    SyscallNumber.READLINK: "readlink",
}


# Position of the path argument checked against excluded prefixes; calls
# not listed here operate on descriptors only.
PATH_ARGUMENT = {
    "open": 0,
    "stat": 0,
    "lstat": 0,
    "access": 0,
    "chmod": 0,
    "chown": 0,
    "lchown": 0,
    "utimes": 0,
    "readdir": 0,
    "chdir": 0,
    "mkdir": 0,
    "rmdir": 0,
    "truncate": 0,
    "rename": 0,
    "unlink": 0,
    "symlink": 1,
    "readlink": 0,
    "copyfile": 0,
    "exists": 0,
    "mkdtemp": 0,
    "realpath": 0,
}
