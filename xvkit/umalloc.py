"""A first-fit free-list allocator over a growable heap arena."""

from __future__ import annotations

import struct
from typing import Iterator, Optional, Tuple

HEADER_SIZE = 8  # a next pointer and a size, each 32 bits
MIN_GROWTH = 4096  # smallest request to sbrk, in header units

_HEADER = struct.Struct("<II")
_BASE = 0  # the empty list head lives at address 0, below the arena


class Heap:
    """Addresses are offsets into ``memory``; blocks are counted in header units."""

    def __init__(self, limit: int = 1 << 20) -> None:
        self.limit = limit
        self.memory = bytearray(HEADER_SIZE)
        self._freep: Optional[int] = None

    @property
    def start(self) -> int:
        """First address of the arena."""
        return HEADER_SIZE

    @property
    def brk(self) -> int:
        """Current end of the arena."""
        return len(self.memory)

    def _ptr(self, addr: int) -> int:
        return _HEADER.unpack_from(self.memory, addr)[0]

    def _size(self, addr: int) -> int:
        return _HEADER.unpack_from(self.memory, addr)[1]

    def _set(self, addr: int, ptr: Optional[int] = None, size: Optional[int] = None) -> None:
        old_ptr, old_size = _HEADER.unpack_from(self.memory, addr)
        _HEADER.pack_into(
            self.memory,
            addr,
            old_ptr if ptr is None else ptr,
            old_size if size is None else size,
        )

    def sbrk(self, n: int) -> int:
        """Move the break by n bytes and return the old break."""
        old = self.brk
        new = old + n
        if new < self.start or new > self.limit:
            raise MemoryError("sbrk out of range")
        if n >= 0:
            self.memory.extend(bytes(n))
        else:
            del self.memory[new:]
        return old

    def _morecore(self, nunits: int) -> int:
        nunits = max(nunits, MIN_GROWTH)
        block = self.sbrk(nunits * HEADER_SIZE)
        self._set(block, size=nunits)
        self._release(block + HEADER_SIZE)
        assert self._freep is not None
        return self._freep

    def malloc(self, nbytes: int) -> int:
        """Allocate nbytes and return the address of the block's payload."""
        if nbytes < 0:
            raise ValueError("negative size")
        nunits = (nbytes + HEADER_SIZE - 1) // HEADER_SIZE + 1
        if self._freep is None:
            self._set(_BASE, ptr=_BASE, size=0)
            self._freep = _BASE
        prevp = self._freep
        p = self._ptr(prevp)
        while True:
            size = self._size(p)
            if size >= nunits:
                if size == nunits:
                    self._set(prevp, ptr=self._ptr(p))
                else:
                    self._set(p, size=size - nunits)
                    p += (size - nunits) * HEADER_SIZE
                    self._set(p, size=nunits)
                self._freep = prevp
                return p + HEADER_SIZE
            if p == self._freep:
                p = self._morecore(nunits)
            prevp, p = p, self._ptr(p)

    def free(self, addr: int) -> None:
        """Return a block obtained from malloc to the free list."""
        block = addr - HEADER_SIZE
        if (
            block < self.start
            or block + HEADER_SIZE > self.brk
            or (block - self.start) % HEADER_SIZE
            or self._freep is None
        ):
            raise ValueError(f"not a heap block: {addr}")
        self._release(addr)

    def _release(self, addr: int) -> None:
        bp = addr - HEADER_SIZE
        p = self._freep
        assert p is not None
        while not (p < bp < self._ptr(p)):
            nxt = self._ptr(p)
            if p >= nxt and (bp > p or bp < nxt):
                break
            p = nxt
        nxt = self._ptr(p)
        if bp + self._size(bp) * HEADER_SIZE == nxt:
            self._set(bp, ptr=self._ptr(nxt), size=self._size(bp) + self._size(nxt))
        else:
            self._set(bp, ptr=nxt)
        if p + self._size(p) * HEADER_SIZE == bp:
            self._set(p, ptr=self._ptr(bp), size=self._size(p) + self._size(bp))
        else:
            self._set(p, ptr=bp)
        self._freep = p

    def free_blocks(self) -> Iterator[Tuple[int, int]]:
        """The (header address, size in units) of each free block in list order."""
        if self._freep is None:
            return
        p = self._ptr(_BASE)
        while p != _BASE:
            yield p, self._size(p)
            p = self._ptr(p)