"""Instruction set and the text format of process programs."""

import enum
import re
from dataclasses import dataclass, field
from pathlib import Path

_UINT_MASK = 0xFFFFFFFF
_WORD = re.compile(r"\s*(\S+)")


class ProgramFormatError(ValueError):
    """Raised when a program description cannot be parsed."""


class Opcode(enum.Enum):
    CALC = 0
    ALLOC = 1
    FREE = 2
    READ = 3
    WRITE = 4
    SYSCALL = 5


_OPCODE_NAMES = {op.name.lower(): op for op in Opcode}


@dataclass(frozen=True)
class Instruction:
    """One instruction with up to four unsigned arguments."""

    opcode: Opcode
    arg_0: int = 0
    arg_1: int = 0
    arg_2: int = 0
    arg_3: int = 0


@dataclass
class Program:
    """A program: its default priority and its instructions."""

    priority: int
    instructions: list[Instruction] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.instructions)


def parse_opcode(name: str) -> Opcode:
    """Return the opcode written as ``name``."""
    try:
        return _OPCODE_NAMES[name]
    except KeyError:
        raise ProgramFormatError(f"unknown opcode: {name}") from None


def _to_uint(word: str) -> int:
    try:
        return int(word) & _UINT_MASK
    except ValueError:
        raise ProgramFormatError(f"expected a number, got {word!r}") from None


class _Scanner:
    def __init__(self, text: str):
        self._text = text
        self._pos = 0

    def word(self) -> str:
        match = _WORD.match(self._text, self._pos)
        if match is None:
            raise ProgramFormatError("unexpected end of program")
        self._pos = match.end()
        return match.group(1)

    def number(self) -> int:
        return _to_uint(self.word())

    def rest_of_line(self) -> str:
        end = self._text.find("\n", self._pos)
        end = len(self._text) if end < 0 else end + 1
        line = self._text[self._pos:end]
        self._pos = end
        return line


def _syscall_args(line: str) -> list[int]:
    args = []
    for item in line.split()[:4]:
        try:
            args.append(int(item) & _UINT_MASK)
        except ValueError:
            break
    return args


_ARG_COUNTS = {
    Opcode.CALC: 0,
    Opcode.ALLOC: 2,
    Opcode.FREE: 1,
    Opcode.READ: 3,
    Opcode.WRITE: 3,
}


def parse_program(text: str) -> Program:
    """Parse a program: a header ``priority count`` then ``count`` instructions."""
    scanner = _Scanner(text)
    priority = scanner.number()
    count = scanner.number()
    instructions = []
    for _ in range(count):
        opcode = parse_opcode(scanner.word())
        if opcode is Opcode.SYSCALL:
            args = _syscall_args(scanner.rest_of_line())
        else:
            args = [scanner.number() for _ in range(_ARG_COUNTS[opcode])]
        instructions.append(Instruction(opcode, *args))
    return Program(priority, instructions)


def read_program(path) -> Program:
    """Read and parse the program stored at ``path``."""
    return parse_program(Path(path).read_text())