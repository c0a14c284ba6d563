import pytest

from xvkit.mmu import (
    DEVSPACE,
    DPL_USER,
    EXTMEM,
    KERNBASE,
    KERNLINK,
    NPDENTRIES,
    NPTENTRIES,
    PGSIZE,
    PHYSTOP,
    PTE_P,
    PTE_U,
    PTE_W,
    SEG_KCODE,
    STA_R,
    STA_W,
    STA_X,
    STS_IG32,
    STS_T32A,
    STS_TG32,
    GateDescriptor,
    SegmentDescriptor,
    p2v,
    pdx,
    pg_round_down,
    pg_round_up,
    pgaddr,
    pte_addr,
    pte_flags,
    ptx,
    seg_asm,
    v2p,
)

ADDRESSES = [0, 1, PGSIZE - 1, PGSIZE, PGSIZE + 1, EXTMEM, PHYSTOP, KERNBASE, KERNLINK, DEVSPACE]


@pytest.mark.parametrize("va", ADDRESSES + [0xFFFFFFFF])
def test_pgaddr_reassembles_address(va):
    assert pgaddr(pdx(va), ptx(va), va - pg_round_down(va)) == va


@pytest.mark.parametrize("va", ADDRESSES + [0xFFFFFFFF])
def test_indexes_in_range(va):
    assert 0 <= pdx(va) < NPDENTRIES
    assert 0 <= ptx(va) < NPTENTRIES


@pytest.mark.parametrize("sz", ADDRESSES)
def test_round_up(sz):
    r = pg_round_up(sz)
    assert r % PGSIZE == 0
    assert sz <= r < sz + PGSIZE


@pytest.mark.parametrize("a", ADDRESSES + [0xFFFFFFFF])
def test_round_down(a):
    r = pg_round_down(a)
    assert r % PGSIZE == 0
    assert r <= a < r + PGSIZE


def test_round_up_of_aligned_is_identity():
    assert pg_round_up(PGSIZE) == PGSIZE
    assert pg_round_down(pg_round_up(KERNLINK + 5)) == pg_round_up(KERNLINK + 5)


def test_pte_split():
    pte = PHYSTOP | PTE_P | PTE_W | PTE_U
    assert pte_addr(pte) == PHYSTOP
    assert pte_flags(pte) == PTE_P | PTE_W | PTE_U


@pytest.mark.parametrize("pte", ADDRESSES + [0xFFFFFFFF])
def test_pte_parts_recombine(pte):
    assert pte_addr(pte) | pte_flags(pte) == pte
    assert pte_flags(pte) < PGSIZE


def test_kernel_address_translation():
    assert p2v(0) == KERNBASE
    assert v2p(KERNLINK) == EXTMEM
    assert p2v(v2p(KERNLINK)) == KERNLINK


@pytest.mark.parametrize("type_", [STA_X | STA_R, STA_W])
@pytest.mark.parametrize("base,limit", [(0, 0xFFFFFFFF), (0x12345678, 0xFFFFF000)])
def test_normal_segment_matches_boot_encoding(type_, base, limit):
    assert SegmentDescriptor.normal(type_, base, limit, 0).to_bytes() == seg_asm(type_, base, limit)


def test_flat_kernel_code_segment_bytes():
    desc = SegmentDescriptor.normal(STA_X | STA_R, 0, 0xFFFFFFFF, 0)
    assert desc.to_bytes() == bytes.fromhex("ffff0000009acf00")


def test_user_segment_keeps_privilege():
    desc = SegmentDescriptor.normal(STA_W, 0, 0xFFFFFFFF, DPL_USER)
    assert desc.dpl == DPL_USER
    assert desc.g == 1 and desc.db == 1


def test_small_segment_uses_byte_limit():
    desc = SegmentDescriptor.small(STS_T32A, 0x12345678, 0x67, 0)
    assert desc.base == 0x12345678
    assert desc.lim_15_0 == 0x67
    assert desc.lim_19_16 == 0
    assert desc.g == 0 and desc.db == 1


def test_interrupt_gate():
    gate = GateDescriptor.make(False, SEG_KCODE << 3, 0x12345678, 0)
    assert gate.offset == 0x12345678
    assert gate.gate_type == STS_IG32
    raw = gate.to_bytes()
    assert int.from_bytes(raw[2:4], "little") == SEG_KCODE << 3
    assert raw[5] == 0x8E


def test_trap_gate_for_user():
    gate = GateDescriptor.make(True, SEG_KCODE << 3, 0xCAFEBABE, DPL_USER)
    assert gate.gate_type == STS_TG32
    assert gate.dpl == DPL_USER
    assert gate.offset == 0xCAFEBABE
    assert gate.to_bytes()[5] == 0xEF