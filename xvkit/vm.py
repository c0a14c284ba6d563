"""Two-level x86 page tables kept in a simulated pool of physical pages.

Page directories and page tables are ordinary physical pages holding
1024 little-endian 32-bit entries, exactly as the processor reads them.
Only the user half of an address space (below KERNBASE) is managed here.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from .mmu import (
    KERNBASE,
    NPDENTRIES,
    PDXSHIFT,
    PGSIZE,
    PTE_P,
    PTE_U,
    PTE_W,
    pdx,
    pg_round_down,
    pg_round_up,
    pte_addr,
    pte_flags,
    ptx,
)

# System parameters
NPROC = 64
KSTACKSIZE = 4096
NCPU = 8
NOFILE = 16
NFILE = 100
NINODE = 50
NDEV = 10
ROOTDEV = 1
MAXARG = 32
MAXOPBLOCKS = 10
LOGSIZE = MAXOPBLOCKS * 3
NBUF = MAXOPBLOCKS * 3
FSSIZE = 1000

_ENTRY_SIZE = 4


class VMError(Exception):
    """A page-table invariant was violated."""


class OutOfMemory(VMError):
    """No free physical page is left."""


class PhysicalMemory:
    """A fixed pool of page-sized frames starting at a physical base address."""

    def __init__(self, npages: int = 1024, base: int = 0x400000) -> None:
        if base % PGSIZE:
            raise ValueError("base must be page aligned")
        if npages < 0:
            raise ValueError("npages must not be negative")
        self.base = base
        self.npages = npages
        self._pages: Dict[int, bytearray] = {}
        self._free: List[int] = [base + i * PGSIZE for i in reversed(range(npages))]

    @property
    def free_pages(self) -> int:
        """Number of frames not currently allocated."""
        return len(self._free)

    def alloc_page(self) -> int:
        """Allocate one zeroed page and return its physical address."""
        if not self._free:
            raise OutOfMemory("out of physical memory")
        pa = self._free.pop()
        self._pages[pa] = bytearray(PGSIZE)
        return pa

    def free_page(self, pa: int) -> None:
        """Return a page to the pool."""
        if pa % PGSIZE or pa not in self._pages:
            raise VMError(f"kfree: bad page {pa:#x}")
        del self._pages[pa]
        self._free.append(pa)

    def _span(self, pa: int, n: int) -> Iterator[Tuple[bytearray, int, int]]:
        if n < 0:
            raise ValueError("negative length")
        while n > 0:
            page_pa = pg_round_down(pa)
            page = self._pages.get(page_pa)
            if page is None:
                raise VMError(f"access to unallocated page {page_pa:#x}")
            off = pa - page_pa
            k = min(n, PGSIZE - off)
            yield page, off, k
            pa += k
            n -= k

    def read(self, pa: int, n: int) -> bytes:
        """Read n bytes starting at physical address pa."""
        return b"".join(bytes(page[off : off + k]) for page, off, k in self._span(pa, n))

    def write(self, pa: int, data: bytes) -> None:
        """Write data starting at physical address pa."""
        pos = 0
        for page, off, k in self._span(pa, len(data)):
            page[off : off + k] = data[pos : pos + k]
            pos += k


class AddressSpace:
    """A page directory and the user pages mapped through it."""

    def __init__(self, memory: PhysicalMemory) -> None:
        self.memory = memory
        self.pgdir: Optional[int] = memory.alloc_page()

    def _dir(self) -> int:
        if self.pgdir is None:
            raise VMError("no pgdir")
        return self.pgdir

    def _get(self, loc: int) -> int:
        return int.from_bytes(self.memory.read(loc, _ENTRY_SIZE), "little")

    def _set(self, loc: int, value: int) -> None:
        self.memory.write(loc, (value & 0xFFFFFFFF).to_bytes(_ENTRY_SIZE, "little"))

    def walk(self, va: int, alloc: bool = False) -> Optional[int]:
        """Physical address of the entry mapping va, creating its table if asked."""
        pde_loc = self._dir() + pdx(va) * _ENTRY_SIZE
        pde = self._get(pde_loc)
        if pde & PTE_P:
            table = pte_addr(pde)
        else:
            if not alloc:
                return None
            table = self.memory.alloc_page()
            self._set(pde_loc, table | PTE_P | PTE_W | PTE_U)
        return table + ptx(va) * _ENTRY_SIZE

    def map_pages(self, va: int, size: int, pa: int, perm: int) -> None:
        """Map the pages covering [va, va+size) to consecutive frames from pa."""
        if size <= 0:
            raise ValueError("size must be positive")
        a = pg_round_down(va)
        last = pg_round_down(va + size - 1)
        while True:
            loc = self.walk(a, True)
            if self._get(loc) & PTE_P:
                raise VMError(f"remap at {a:#x}")
            self._set(loc, pa | perm | PTE_P)
            if a == last:
                break
            a += PGSIZE
            pa += PGSIZE

    def init_code(self, code: bytes) -> None:
        """Load code, smaller than a page, at virtual address 0."""
        if len(code) >= PGSIZE:
            raise VMError("inituvm: more than a page")
        page = self.memory.alloc_page()
        self.map_pages(0, PGSIZE, page, PTE_W | PTE_U)
        self.memory.write(page, code)

    def alloc(self, oldsz: int, newsz: int) -> int:
        """Grow user memory from oldsz to newsz and return the new size."""
        if newsz >= KERNBASE:
            raise VMError("size reaches kernel space")
        if newsz < oldsz:
            return oldsz
        for a in range(pg_round_up(oldsz), newsz, PGSIZE):
            try:
                page = self.memory.alloc_page()
            except OutOfMemory:
                self.dealloc(newsz, oldsz)
                raise
            try:
                self.map_pages(a, PGSIZE, page, PTE_W | PTE_U)
            except OutOfMemory:
                self.dealloc(newsz, oldsz)
                self.memory.free_page(page)
                raise
        return newsz

    def dealloc(self, oldsz: int, newsz: int) -> int:
        """Shrink user memory from oldsz to newsz and return the new size."""
        if newsz >= oldsz:
            return oldsz
        a = pg_round_up(newsz)
        while a < oldsz:
            loc = self.walk(a, False)
            if loc is None:
                a = ((pdx(a) + 1) << PDXSHIFT) - PGSIZE
            else:
                pte = self._get(loc)
                if pte & PTE_P:
                    pa = pte_addr(pte)
                    if pa == 0:
                        raise VMError("kfree")
                    self.memory.free_page(pa)
                    self._set(loc, 0)
            a += PGSIZE
        return newsz

    def free(self) -> None:
        """Release every user page, every page table and the directory."""
        pgdir = self._dir()
        self.dealloc(KERNBASE, 0)
        for i in range(NPDENTRIES):
            pde = self._get(pgdir + i * _ENTRY_SIZE)
            if pde & PTE_P:
                self.memory.free_page(pte_addr(pde))
        self.memory.free_page(pgdir)
        self.pgdir = None

    def clear_user(self, va: int) -> None:
        """Make the page at va inaccessible to user code."""
        loc = self.walk(va, False)
        if loc is None:
            raise VMError("clearpteu")
        self._set(loc, self._get(loc) & ~PTE_U)

    def copy(self, sz: int) -> "AddressSpace":
        """A new address space holding a copy of the first sz bytes."""
        child = AddressSpace(self.memory)
        try:
            for i in range(0, sz, PGSIZE):
                loc = self.walk(i, False)
                if loc is None:
                    raise VMError("copyuvm: pte should exist")
                pte = self._get(loc)
                if not pte & PTE_P:
                    raise VMError("copyuvm: page not present")
                page = self.memory.alloc_page()
                self.memory.write(page, self.memory.read(pte_addr(pte), PGSIZE))
                try:
                    child.map_pages(i, PGSIZE, page, pte_flags(pte))
                except OutOfMemory:
                    self.memory.free_page(page)
                    raise
        except VMError:
            child.free()
            raise
        return child

    def translate(self, va: int) -> Optional[int]:
        """Physical address of the user page containing va, or None."""
        loc = self.walk(va, False)
        if loc is None:
            return None
        pte = self._get(loc)
        if not pte & PTE_P or not pte & PTE_U:
            return None
        return pte_addr(pte)

    def copy_out(self, va: int, data: bytes) -> None:
        """Copy data into user memory at va."""
        pos = 0
        while pos < len(data):
            va0 = pg_round_down(va)
            pa0 = self.translate(va0)
            if pa0 is None:
                raise VMError(f"copyout: no user page at {va0:#x}")
            n = min(PGSIZE - (va - va0), len(data) - pos)
            self.memory.write(pa0 + (va - va0), data[pos : pos + n])
            pos += n
            va = va0 + PGSIZE