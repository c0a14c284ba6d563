"""Count lines, words and bytes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from functools import partial
from typing import BinaryIO, Optional, Sequence

_WHITESPACE = frozenset(b" \r\t\n\v")
_CHUNK = 512


@dataclass
class WordCount:
    """Line, word and byte totals of one input."""

    lines: int = 0
    words: int = 0
    chars: int = 0


def count(stream: BinaryIO) -> WordCount:
    """Count the lines, words and bytes of a binary stream."""
    result = WordCount()
    in_word = False
    for chunk in iter(partial(stream.read, _CHUNK), b""):
        result.chars += len(chunk)
        result.lines += chunk.count(b"\n")
        for byte in chunk:
            if byte in _WHITESPACE:
                in_word = False
            elif not in_word:
                result.words += 1
                in_word = True
    return result


def _report(stream: BinaryIO, name: str) -> int:
    try:
        totals = count(stream)
    except OSError:
        print("wc: read error")
        return 1
    print(f"{totals.lines} {totals.words} {totals.chars} {name}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print counts for each named file, or for standard input."""
    names = sys.argv[1:] if argv is None else list(argv)
    if not names:
        return _report(sys.stdin.buffer, "")
    for name in names:
        try:
            stream = open(name, "rb")
        except OSError:
            print(f"wc: cannot open {name}")
            return 1
        with stream:
            status = _report(stream, name)
        if status:
            return status
    return 0