"""Parsing of shell command lines into command trees."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple, Union

# Open modes used for redirections
O_RDONLY = 0x000
O_WRONLY = 0x001
O_RDWR = 0x002
O_CREATE = 0x200

MAXARGS = 10

WHITESPACE = " \t\r\n\v"
SYMBOLS = "<|>&;()"


class ShellSyntaxError(ValueError):
    """The command line could not be parsed."""


@dataclass(frozen=True)
class ExecCommand:
    """Run a program with arguments; argv[0] names the program."""

    argv: Tuple[str, ...] = ()


@dataclass(frozen=True)
class RedirCommand:
    """Run cmd with descriptor fd reopened on file with the given mode."""

    cmd: Command
    file: str
    mode: int
    fd: int


@dataclass(frozen=True)
class PipeCommand:
    """Connect the output of left to the input of right."""

    left: Command
    right: Command


@dataclass(frozen=True)
class ListCommand:
    """Run left to completion, then right."""

    left: Command
    right: Command


@dataclass(frozen=True)
class BackCommand:
    """Run cmd without waiting for it."""

    cmd: Command


Command = Union[ExecCommand, RedirCommand, PipeCommand, ListCommand, BackCommand]

_Redirection = Tuple[str, int, int]


class _Parser:
    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0

    @property
    def rest(self) -> str:
        return self._text[self._pos :]

    def _skip_space(self) -> None:
        while self._pos < len(self._text) and self._text[self._pos] in WHITESPACE:
            self._pos += 1

    def peek(self, toks: str) -> bool:
        self._skip_space()
        return self._pos < len(self._text) and self._text[self._pos] in toks

    def token(self) -> Tuple[str, str]:
        """The next token's kind and text; kind is "" at the end of input."""
        self._skip_space()
        text = self._text
        start = self._pos
        if start >= len(text):
            return "", ""
        c = text[start]
        if c in "|();&<":
            self._pos += 1
            kind = c
        elif c == ">":
            self._pos += 1
            kind = ">"
            if self._pos < len(text) and text[self._pos] == ">":
                kind = "+"
                self._pos += 1
        else:
            kind = "a"
            while (
                self._pos < len(text)
                and text[self._pos] not in WHITESPACE
                and text[self._pos] not in SYMBOLS
            ):
                self._pos += 1
        word = text[start : self._pos]
        self._skip_space()
        return kind, word

    def line(self) -> Command:
        cmd = self.pipe()
        while self.peek("&"):
            self.token()
            cmd = BackCommand(cmd)
        if self.peek(";"):
            self.token()
            cmd = ListCommand(cmd, self.line())
        return cmd

    def pipe(self) -> Command:
        cmd = self.exec()
        if self.peek("|"):
            self.token()
            cmd = PipeCommand(cmd, self.pipe())
        return cmd

    def redirections(self) -> List[_Redirection]:
        found: List[_Redirection] = []
        while self.peek("<>"):
            kind, _ = self.token()
            file_kind, name = self.token()
            if file_kind != "a":
                raise ShellSyntaxError("missing file for redirection")
            if kind == "<":
                found.append((name, O_RDONLY, 0))
            else:
                # ">>" opens the file the same way as ">".
                found.append((name, O_WRONLY | O_CREATE, 1))
        return found

    @staticmethod
    def _wrap(cmd: Command, redirections: List[_Redirection]) -> Command:
        for name, mode, fd in redirections:
            cmd = RedirCommand(cmd, name, mode, fd)
        return cmd

    def block(self) -> Command:
        if not self.peek("("):
            raise ShellSyntaxError("parseblock")
        self.token()
        cmd = self.line()
        if not self.peek(")"):
            raise ShellSyntaxError("syntax - missing )")
        self.token()
        return self._wrap(cmd, self.redirections())

    def exec(self) -> Command:
        if self.peek("("):
            return self.block()
        argv: List[str] = []
        redirections = self.redirections()
        while not self.peek("|)&;"):
            kind, word = self.token()
            if not kind:
                break
            if kind != "a":
                raise ShellSyntaxError("syntax")
            argv.append(word)
            if len(argv) >= MAXARGS:
                raise ShellSyntaxError("too many args")
            redirections.extend(self.redirections())
        return self._wrap(ExecCommand(tuple(argv)), redirections)


def parse_command(line: str) -> Command:
    """Parse a whole command line into a command tree."""
    parser = _Parser(line)
    cmd = parser.line()
    parser.peek("")
    if parser.rest:
        raise ShellSyntaxError(f"syntax: leftovers: {parser.rest}")
    return cmd


def parse_cd(line: str) -> Optional[str]:
    """The directory of a "cd" line as read (last character dropped), or None."""
    if not line.startswith("cd "):
        return None
    return line[:-1][3:]