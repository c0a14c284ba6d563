"""Reading the headers of 32-bit little-endian ELF executables."""

from __future__ import annotations

import struct
from dataclasses import astuple, dataclass
from typing import ClassVar, List

ELF_MAGIC = 0x464C457F  # "\x7FELF" read little-endian

ELF_PROG_LOAD = 1

ELF_PROG_FLAG_EXEC = 1
ELF_PROG_FLAG_WRITE = 2
ELF_PROG_FLAG_READ = 4


class ElfFormatError(ValueError):
    """The data is not a well-formed ELF image."""


@dataclass(frozen=True)
class ElfHeader:
    """The ELF file header."""

    magic: int
    elf: bytes
    type: int
    machine: int
    version: int
    entry: int
    phoff: int
    shoff: int
    flags: int
    ehsize: int
    phentsize: int
    phnum: int
    shentsize: int
    shnum: int
    shstrndx: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<I12sHHIIIIIHHHHHH")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def parse(cls, data: bytes) -> "ElfHeader":
        """Parse the header at the start of data."""
        if len(data) < cls.SIZE:
            raise ElfFormatError("truncated ELF header")
        header = cls(*cls._STRUCT.unpack_from(data))
        if header.magic != ELF_MAGIC:
            raise ElfFormatError("bad ELF magic")
        return header

    def pack(self) -> bytes:
        """Encode the header back to bytes."""
        return self._STRUCT.pack(*astuple(self))


@dataclass(frozen=True)
class ProgramHeader:
    """One entry of the program header table."""

    type: int
    off: int
    vaddr: int
    paddr: int
    filesz: int
    memsz: int
    flags: int
    align: int

    _STRUCT: ClassVar[struct.Struct] = struct.Struct("<8I")
    SIZE: ClassVar[int] = _STRUCT.size

    @classmethod
    def parse(cls, data: bytes) -> "ProgramHeader":
        """Parse a program header at the start of data."""
        if len(data) < cls.SIZE:
            raise ElfFormatError("truncated program header")
        return cls(*cls._STRUCT.unpack_from(data))

    def is_loadable(self) -> bool:
        """Whether this segment is to be loaded into memory."""
        return self.type == ELF_PROG_LOAD

    def pack(self) -> bytes:
        """Encode the program header back to bytes."""
        return self._STRUCT.pack(*astuple(self))


def program_headers(data: bytes) -> List[ProgramHeader]:
    """All program headers of the ELF image in data."""
    header = ElfHeader.parse(data)
    offsets = (header.phoff + i * ProgramHeader.SIZE for i in range(header.phnum))
    result = []
    for off in offsets:
        if off + ProgramHeader.SIZE > len(data):
            raise ElfFormatError("program header table runs past end of file")
        result.append(ProgramHeader.parse(data[off:]))
    return result