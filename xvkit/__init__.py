"""Models of a small x86 teaching kernel's paging, descriptors, ELF headers, locks, heap, syscall plumbing, shell parser and wc."""

__version__ = "0.1.0"
__all__ = ["cstring", "elf", "locks", "mmu", "shell", "syscall", "umalloc", "vm", "wc"]