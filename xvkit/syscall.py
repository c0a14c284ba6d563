"""System call numbers, argument fetching from user memory, and dispatch."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable, Dict, Optional, TextIO

_U32 = 0xFFFFFFFF
_INT = struct.Struct("<i")

# Processor-defined traps
T_DIVIDE = 0
T_DEBUG = 1
T_NMI = 2
T_BRKPT = 3
T_OFLOW = 4
T_BOUND = 5
T_ILLOP = 6
T_DEVICE = 7
T_DBLFLT = 8
T_TSS = 10
T_SEGNP = 11
T_STACK = 12
T_GPFLT = 13
T_PGFLT = 14
T_FPERR = 16
T_ALIGN = 17
T_MCHK = 18
T_SIMDERR = 19

T_SYSCALL = 64
T_DEFAULT = 500

T_IRQ0 = 32

IRQ_TIMER = 0
IRQ_KBD = 1
IRQ_COM1 = 4
IRQ_IDE = 14
IRQ_ERROR = 19
IRQ_SPURIOUS = 31


class Syscall(IntEnum):
    """System call numbers."""

    FORK = 1
    EXIT = 2
    WAIT = 3
    PIPE = 4
    READ = 5
    KILL = 6
    EXEC = 7
    FSTAT = 8
    CHDIR = 9
    DUP = 10
    GETPID = 11
    SBRK = 12
    SLEEP = 13
    UPTIME = 14
    OPEN = 15
    WRITE = 16
    MKNOD = 17
    UNLINK = 18
    LINK = 19
    MKDIR = 20
    CLOSE = 21
    GETPPID = 22


class SyscallError(Exception):
    """A system call argument lies outside the process's memory."""


class UserMemory:
    """The address space of a process: addresses 0 up to its size."""

    def __init__(self, data: bytes = b"") -> None:
        self.data = bytearray(data)

    @property
    def size(self) -> int:
        """Size of the process memory in bytes."""
        return len(self.data)

    def fetch_int(self, addr: int) -> int:
        """The signed 32-bit integer stored at addr."""
        addr &= _U32
        if addr >= self.size or addr + 4 > self.size:
            raise SyscallError(f"int at {addr:#x} outside process memory")
        return _INT.unpack_from(self.data, addr)[0]

    def fetch_str(self, addr: int) -> bytes:
        """The NUL-terminated string at addr, without its NUL."""
        addr &= _U32
        if addr >= self.size:
            raise SyscallError(f"string at {addr:#x} outside process memory")
        end = self.data.find(0, addr)
        if end < 0:
            raise SyscallError(f"string at {addr:#x} is not terminated")
        return bytes(self.data[addr:end])


@dataclass
class SyscallArgs:
    """The calling process: its memory, saved stack pointer, pid and name."""

    memory: UserMemory
    esp: int
    pid: int = 0
    name: str = ""

    def arg_int(self, n: int) -> int:
        """The nth 32-bit argument, above the saved return address."""
        return self.memory.fetch_int(self.esp + 4 + 4 * n)

    def arg_ptr(self, n: int, size: int) -> int:
        """The nth argument as the address of a size-byte block inside memory."""
        addr = self.arg_int(n) & _U32
        if size < 0 or addr >= self.memory.size or addr + size > self.memory.size:
            raise SyscallError(f"block at {addr:#x} of {size} bytes outside process memory")
        return addr

    def arg_str(self, n: int) -> bytes:
        """The nth argument as a NUL-terminated string."""
        return self.memory.fetch_str(self.arg_int(n))


Handler = Callable[[SyscallArgs], int]


class SyscallDispatcher:
    """Maps system call numbers to handlers and runs them."""

    def __init__(self, console: Optional[TextIO] = None) -> None:
        self.console = console
        self._handlers: Dict[int, Handler] = {}

    def register(self, num: int, handler: Handler) -> None:
        """Install handler for system call num; num must be a known call."""
        self._handlers[Syscall(num)] = handler

    def dispatch(self, num: int, args: SyscallArgs) -> int:
        """Run system call num and return its result, or -1 on failure."""
        handler = self._handlers.get(num) if num > 0 else None
        if handler is None:
            out = self.console if self.console is not None else sys.stdout
            out.write(f"{args.pid} {args.name}: unknown sys call {num}\n")
            return -1
        try:
            return handler(args)
        except SyscallError:
            return -1