"""NUL-terminated byte string and memory helpers."""

from __future__ import annotations

from itertools import chain, islice, repeat
from typing import BinaryIO, Optional, Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _as_bytes(s: BytesLike) -> bytes:
    if isinstance(s, str):
        return s.encode("latin-1")
    return bytes(s)


def _terminated(s: BytesLike) -> bytes:
    data = _as_bytes(s)
    return data[: strlen(data)]


def _compare(p: BytesLike, q: BytesLike, limit: Optional[int]) -> int:
    pairs = zip(chain(_as_bytes(p), repeat(0)), chain(_as_bytes(q), repeat(0)))
    for a, b in islice(pairs, limit):
        if a == 0 or a != b:
            return a - b
    return 0


def memcmp(a: BytesLike, b: BytesLike, n: int) -> int:
    """Compare n bytes; the difference of the first unequal pair, or 0."""
    a, b = _as_bytes(a), _as_bytes(b)
    if n > len(a) or n > len(b):
        raise ValueError("memcmp length exceeds buffer")
    for x, y in zip(a[:n], b[:n]):
        if x != y:
            return x - y
    return 0


def memmove(buf: bytearray, dst: int, src: int, n: int) -> bytearray:
    """Copy n bytes within buf from src to dst; overlapping ranges are safe."""
    if n < 0 or dst < 0 or src < 0 or dst + n > len(buf) or src + n > len(buf):
        raise IndexError("memmove range outside buffer")
    buf[dst : dst + n] = buf[src : src + n]
    return buf


def strncmp(p: BytesLike, q: BytesLike, n: int) -> int:
    """Compare at most n characters of two NUL-terminated strings."""
    return _compare(p, q, max(n, 0))


def strcmp(p: BytesLike, q: BytesLike) -> int:
    """Compare two NUL-terminated strings as unsigned bytes."""
    return _compare(p, q, None)


def strncpy(t: BytesLike, n: int) -> bytes:
    """The n bytes strncpy leaves in its destination: the string, NUL padded."""
    if n <= 0:
        return b""
    body = _terminated(t)[:n]
    return body + bytes(n - len(body))


def safestrcpy(t: BytesLike, n: int) -> bytes:
    """The string an n-byte buffer holds after a copy that always terminates."""
    if n <= 0:
        return b""
    return _terminated(t)[: n - 1]


def strlen(s: BytesLike) -> int:
    """Length up to the first NUL byte."""
    data = _as_bytes(s)
    end = data.find(0)
    return len(data) if end < 0 else end


def strchr(s: BytesLike, c: Union[int, bytes, str]) -> Optional[int]:
    """Index of the first c before the terminating NUL, or None."""
    code = c if isinstance(c, int) else _as_bytes(c)[0]
    if code == 0:
        return None
    found = _terminated(s).find(code)
    return None if found < 0 else found


def atoi(s: BytesLike) -> int:
    """Value of the leading decimal digits; 0 if there are none."""
    data = _as_bytes(s)
    digits = bytes(islice(data, _digit_run(data)))
    return int(digits) if digits else 0


def _digit_run(data: bytes) -> int:
    for index, byte in enumerate(data):
        if not 0x30 <= byte <= 0x39:
            return index
    return len(data)


def gets(stream: BinaryIO, max_len: int) -> bytes:
    """Read one line of at most max_len - 1 bytes, keeping the newline."""
    line = bytearray()
    while len(line) + 1 < max_len:
        c = stream.read(1)
        if not c:
            break
        line += c
        if c in (b"\n", b"\r"):
            break
    return bytes(line)