"""Typed external command descriptions.

A StageInvocation is an ordered list of ``(flag, value)`` pairs plus the
program, operands, inputs and promised outputs. Backends turn it into an
argv; nothing in the pipeline concatenates command strings.
"""

import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple, Union

__all__ = ['StageInvocation', 'StageOutput']

ArgValue = Union[None, str, Tuple[str, ...]]


@dataclass(frozen=True)
class StageInvocation:
    """One call of an external operation.

    Attributes
    ----------
    operation : str
        Stage kind, e.g. ``"render"``, ``"join"``, ``"quantize"``.
    tool : str
        Backend key: ``"render"``, ``"toolkit"`` or ``"encoder"``.
    program : tuple of str
        Program and sub-command words, e.g. ``("unu", "join")``.
    args : tuple of (flag, value)
        ``None`` values are bare flags, tuples expand to several words.
    operands : tuple of str
        Positional words placed right after ``program``.
    inputs, outputs : tuple of Path
        Files read and files promised; outputs are what fakes materialize
        and what the executor verifies.
    """
    operation: str
    tool: str
    program: Tuple[str, ...]
    args: Tuple[Tuple[str, ArgValue], ...] = ()
    operands: Tuple[str, ...] = ()
    inputs: Tuple[Path, ...] = ()
    outputs: Tuple[Path, ...] = ()

    def argv(self) -> list:
        words = list(self.program) + list(self.operands)
        for flag, value in self.args:
            words.append(flag)
            if value is None:
                continue
            if isinstance(value, tuple):
                words.extend(value)
            else:
                words.append(value)
        return words

    def command(self) -> str:
        return shlex.join(self.argv())

    def value(self, flag: str) -> Optional[ArgValue]:
        """Value passed for ``flag`` (first occurrence), or None."""
        for name, value in self.args:
            if name == flag:
                return value
        return None


@dataclass
class StageOutput:
    """What an external operation left behind besides its files."""
    returncode: int
    stdout: str = ""
    diagnostics: str = ""
    lines: list = field(default_factory=list)
