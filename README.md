# xvkit

Pure-Python models of the core pieces of a small x86 teaching kernel and
its user-space library: page tables over a simulated pool of physical
pages, GDT/IDT descriptors, ELF headers, locks, a free-list heap,
system-call argument fetching and dispatch, a shell command-line parser,
and a `wc` command.

## Modules

- `xvkit.mmu` — page-table arithmetic (`pdx`, `ptx`, `pgaddr`,
  `pg_round_up`, `pg_round_down`, `pte_addr`, `pte_flags`), kernel
  address conversion (`v2p`, `p2v`), the memory-layout and flag
  constants (`PGSIZE`, `KERNBASE`, `PTE_P`, ...), and descriptors:
  `SegmentDescriptor.normal` / `SegmentDescriptor.small`,
  `GateDescriptor.make`, each with `to_bytes()` giving the eight bytes
  the processor reads, plus `seg_asm` for boot-style flat segments.
- `xvkit.cstring` — C string and memory routines with the same results:
  `memcmp`, `memmove` (in place on a `bytearray`), `strncmp`, `strcmp`,
  `strncpy`, `safestrcpy`, `strlen`, `strchr` (returns an index or
  `None`), `atoi`, and `gets` (one line from a binary stream).
- `xvkit.elf` — `ElfHeader.parse`, `ProgramHeader.parse`,
  `ProgramHeader.is_loadable` and `program_headers(data)` for 32-bit
  little-endian ELF images; both header classes have `pack()`.
  Bad magic or truncated data raises `ElfFormatError`.
- `xvkit.wc` — `count(stream)` returns a `WordCount` of lines, words and
  bytes; `main(argv=None)` is the `xvkit-wc` command.
- `xvkit.vm` — `PhysicalMemory` (a pool of page frames with
  `alloc_page`, `free_page`, `read`, `write`) and `AddressSpace`, whose
  page directory and tables live in that pool: `walk`, `map_pages`,
  `init_code`, `alloc`, `dealloc`, `free`, `clear_user`, `copy`,
  `translate`, `copy_out`. Errors raise `VMError`; running out of
  frames raises `OutOfMemory`. Also holds the system parameters
  (`NPROC`, `NOFILE`, `MAXARG`, ...).
- `xvkit.umalloc` — `Heap`, a first-fit free-list allocator over a
  `bytearray` arena grown with `sbrk`; `malloc` returns an address,
  `free` returns it to the list, `free_blocks()` lists free blocks.
- `xvkit.locks` — `SpinLock` (held per thread, usable as a context
  manager) and `SleepLock` (held per process id); misuse raises
  `LockError`.
- `xvkit.shell` — `parse_command(line)` builds a tree of `ExecCommand`,
  `RedirCommand`, `PipeCommand`, `ListCommand` and `BackCommand`;
  `parse_cd(line)` picks out the built-in `cd`; bad input raises
  `ShellSyntaxError`. `>>` opens its file the same way as `>`.
- `xvkit.syscall` — the `Syscall` numbers and trap constants,
  `UserMemory` with bounds-checked `fetch_int` / `fetch_str`,
  `SyscallArgs` for reading arguments off the user stack (`arg_int`,
  `arg_ptr`, `arg_str`), and `SyscallDispatcher` (`register`,
  `dispatch`) which returns -1 for unknown calls or bad arguments.

## Installing

    pip install .

## Counting words

    xvkit-wc notes.txt other.txt

prints `lines words bytes name` for each file; with no files it reads
standard input. It stops with status 1 at the first file it cannot open.

## Example

```python
from xvkit.mmu import pdx, ptx, pg_round_up
from xvkit.shell import parse_command

va = 0x0804A123
print(pdx(va), ptx(va), hex(pg_round_up(va)))

tree = parse_command("cat < in.txt | grep x > out.txt; echo done &")
print(tree)
```

## What it does not do

This is not a kernel and does not run programs. The shell module only
parses command lines; nothing executes the resulting trees. There is no
file system, process table, scheduler or set of system-call
implementations: `SyscallDispatcher` routes to whatever handlers you
register. Page tables cover the user half of an address space only and
no kernel mappings are built.

## Running the tests

    pip install .[test]
    pytest