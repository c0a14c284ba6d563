"""x86 memory-management structures, address arithmetic and memory layout."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Iterable, Tuple

_U32 = 0xFFFFFFFF

# Eflags register
FL_IF = 0x00000200

# Control register flags
CR0_PE = 0x00000001
CR0_WP = 0x00010000
CR0_PG = 0x80000000
CR4_PSE = 0x00000010

# Segment selectors
SEG_KCODE = 1
SEG_KDATA = 2
SEG_UCODE = 3
SEG_UDATA = 4
SEG_TSS = 5
NSEGS = 6

DPL_USER = 0x3

# Application segment type bits
STA_X = 0x8
STA_W = 0x2
STA_R = 0x2

# System segment type bits
STS_T32A = 0x9
STS_IG32 = 0xE
STS_TG32 = 0xF

# Page directory and page table constants
NPDENTRIES = 1024
NPTENTRIES = 1024
PGSIZE = 4096
PTXSHIFT = 12
PDXSHIFT = 22

# Page table/directory entry flags
PTE_P = 0x001
PTE_W = 0x002
PTE_U = 0x004
PTE_PS = 0x080

# Memory layout
EXTMEM = 0x100000
PHYSTOP = 0xE000000
DEVSPACE = 0xFE000000
KERNBASE = 0x80000000
KERNLINK = KERNBASE + EXTMEM

# The all-zero descriptor that occupies slot 0 of every GDT.
SEG_NULL = bytes(8)


def pdx(va: int) -> int:
    """Page directory index of a virtual address."""
    return ((va & _U32) >> PDXSHIFT) & 0x3FF


def ptx(va: int) -> int:
    """Page table index of a virtual address."""
    return ((va & _U32) >> PTXSHIFT) & 0x3FF


def pgaddr(d: int, t: int, o: int) -> int:
    """Build a virtual address from directory index, table index and offset."""
    return ((d << PDXSHIFT) | (t << PTXSHIFT) | o) & _U32


def pg_round_up(sz: int) -> int:
    """Round up to the next page boundary (wrapping at 32 bits)."""
    return (sz + PGSIZE - 1) & ~(PGSIZE - 1) & _U32


def pg_round_down(a: int) -> int:
    """Round down to the page boundary."""
    return a & ~(PGSIZE - 1) & _U32


def pte_addr(pte: int) -> int:
    """Physical address held in a page table or directory entry."""
    return pte & _U32 & ~0xFFF


def pte_flags(pte: int) -> int:
    """Flag bits of a page table or directory entry."""
    return pte & 0xFFF


def v2p(a: int) -> int:
    """Kernel virtual address to physical address."""
    return (a - KERNBASE) & _U32


def p2v(a: int) -> int:
    """Physical address to kernel virtual address."""
    return (a + KERNBASE) & _U32


def seg_asm(type_: int, base: int, limit: int) -> bytes:
    """Encode a flat 32-bit, 4K-granular segment descriptor as boot code does."""
    words = struct.pack("<HH", (limit >> 12) & 0xFFFF, base & 0xFFFF)
    return words + bytes(
        [
            (base >> 16) & 0xFF,
            0x90 | type_,
            0xC0 | ((limit >> 28) & 0xF),
            (base >> 24) & 0xFF,
        ]
    )


def _pack_bits(fields: Iterable[Tuple[int, int]]) -> bytes:
    value = 0
    shift = 0
    for field, width in fields:
        value |= (field & ((1 << width) - 1)) << shift
        shift += width
    return value.to_bytes(shift // 8, "little")


@dataclass
class SegmentDescriptor:
    """A GDT segment descriptor, field for field."""

    lim_15_0: int = 0
    base_15_0: int = 0
    base_23_16: int = 0
    seg_type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    lim_19_16: int = 0
    avl: int = 0
    rsv1: int = 0
    db: int = 0
    g: int = 0
    base_31_24: int = 0

    @classmethod
    def normal(cls, type_: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A 32-bit segment whose limit is counted in 4K pages."""
        base &= _U32
        limit &= _U32
        return cls(
            lim_15_0=(limit >> 12) & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            seg_type=type_ & 0xF,
            s=1,
            dpl=dpl & 0x3,
            p=1,
            lim_19_16=(limit >> 28) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=1,
            base_31_24=(base >> 24) & 0xFF,
        )

    @classmethod
    def small(cls, type_: int, base: int, limit: int, dpl: int) -> "SegmentDescriptor":
        """A segment whose limit is counted in bytes."""
        base &= _U32
        limit &= _U32
        return cls(
            lim_15_0=limit & 0xFFFF,
            base_15_0=base & 0xFFFF,
            base_23_16=(base >> 16) & 0xFF,
            seg_type=type_ & 0xF,
            s=1,
            dpl=dpl & 0x3,
            p=1,
            lim_19_16=(limit >> 16) & 0xF,
            avl=0,
            rsv1=0,
            db=1,
            g=0,
            base_31_24=(base >> 24) & 0xFF,
        )

    @property
    def base(self) -> int:
        """The full 32-bit base address."""
        return self.base_15_0 | (self.base_23_16 << 16) | (self.base_31_24 << 24)

    def to_bytes(self) -> bytes:
        """The eight bytes the processor reads from the GDT."""
        return _pack_bits(
            (
                (self.lim_15_0, 16),
                (self.base_15_0, 16),
                (self.base_23_16, 8),
                (self.seg_type, 4),
                (self.s, 1),
                (self.dpl, 2),
                (self.p, 1),
                (self.lim_19_16, 4),
                (self.avl, 1),
                (self.rsv1, 1),
                (self.db, 1),
                (self.g, 1),
                (self.base_31_24, 8),
            )
        )


@dataclass
class GateDescriptor:
    """An interrupt or trap gate in the IDT."""

    off_15_0: int = 0
    cs: int = 0
    args: int = 0
    rsv1: int = 0
    gate_type: int = 0
    s: int = 0
    dpl: int = 0
    p: int = 0
    off_31_16: int = 0

    @classmethod
    def make(cls, is_trap: bool, selector: int, offset: int, dpl: int) -> "GateDescriptor":
        """A present gate; trap gates leave interrupts enabled, interrupt gates do not."""
        offset &= _U32
        return cls(
            off_15_0=offset & 0xFFFF,
            cs=selector & 0xFFFF,
            args=0,
            rsv1=0,
            gate_type=STS_TG32 if is_trap else STS_IG32,
            s=0,
            dpl=dpl & 0x3,
            p=1,
            off_31_16=offset >> 16,
        )

    @property
    def offset(self) -> int:
        """The full 32-bit handler offset."""
        return self.off_15_0 | (self.off_31_16 << 16)

    def to_bytes(self) -> bytes:
        """The eight bytes the processor reads from the IDT."""
        return _pack_bits(
            (
                (self.off_15_0, 16),
                (self.cs, 16),
                (self.args, 5),
                (self.rsv1, 3),
                (self.gate_type, 4),
                (self.s, 1),
                (self.dpl, 2),
                (self.p, 1),
                (self.off_31_16, 16),
            )
        )