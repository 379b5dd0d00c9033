'''
modelo de comandos VM (CommandKind, ArithmeticOp, Segment, Command)
'''

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .diagnostics import InvalidSegment, MalformedCommand

class CommandKind(Enum):
    """Tipo de comando VM."""
    ARITHMETIC = "arithmetic"
    PUSH = "push"
    POP = "pop"
    LABEL = "label"
    GOTO = "goto"
    IF_GOTO = "if-goto"
    FUNCTION = "function"
    CALL = "call"
    RETURN = "return"

class ArithmeticOp(Enum):
    """Operaciones aritmético-lógicas sin operandos explícitos."""
    ADD = "add"
    SUB = "sub"
    NEG = "neg"
    EQ = "eq"
    GT = "gt"
    LT = "lt"
    AND = "and"
    OR = "or"
    NOT = "not"

class Segment(Enum):
    """Segmentos de memoria direccionables por push/pop."""
    LOCAL = "local"
    ARGUMENT = "argument"
    THIS = "this"
    THAT = "that"
    CONSTANT = "constant"
    STATIC = "static"
    TEMP = "temp"
    POINTER = "pointer"

    @classmethod
    def from_name(cls, name: str) -> "Segment":
        """Devuelve el segmento por nombre o lanza InvalidSegment."""
        try:
            return cls(name)
        except ValueError:
            raise InvalidSegment(
                f"Segmento inválido: {name}",
                hint="local, argument, this, that, constant, static, temp o pointer",
            ) from None

# Palabras clave de la VM que no son aritméticas
KEYWORDS = {kind.value: kind for kind in CommandKind if kind is not CommandKind.ARITHMETIC}

# Operandos esperados (sin contar la palabra clave)
ARITY = {
    CommandKind.ARITHMETIC: 0,
    CommandKind.PUSH: 2,
    CommandKind.POP: 2,
    CommandKind.LABEL: 1,
    CommandKind.GOTO: 1,
    CommandKind.IF_GOTO: 1,
    CommandKind.FUNCTION: 2,
    CommandKind.CALL: 2,
    CommandKind.RETURN: 0,
}

Arg1 = Union[ArithmeticOp, Segment, str, None]

@dataclass(frozen=True)
class Command:
    """Comando VM ya analizado; inmutable.

    - ARITHMETIC: arg1 = ArithmeticOp
    - PUSH/POP: arg1 = Segment, arg2 = índice
    - LABEL/GOTO/IF_GOTO: arg1 = nombre de etiqueta
    - FUNCTION/CALL: arg1 = nombre de función, arg2 = nLocals / nArgs
    - RETURN: sin operandos
    """
    kind: CommandKind
    arg1: Arg1 = None
    arg2: Optional[int] = None
    line: Optional[int] = None
    text: Optional[str] = None

    def __post_init__(self) -> None:
        k = self.kind
        if k is CommandKind.ARITHMETIC:
            ok = isinstance(self.arg1, ArithmeticOp) and self.arg2 is None
        elif k in (CommandKind.PUSH, CommandKind.POP):
            ok = isinstance(self.arg1, Segment) and isinstance(self.arg2, int) and self.arg2 >= 0
        elif k in (CommandKind.LABEL, CommandKind.GOTO, CommandKind.IF_GOTO):
            ok = isinstance(self.arg1, str) and bool(self.arg1) and self.arg2 is None
        elif k in (CommandKind.FUNCTION, CommandKind.CALL):
            ok = isinstance(self.arg1, str) and bool(self.arg1) and isinstance(self.arg2, int) and self.arg2 >= 0
        else:
            ok = self.arg1 is None and self.arg2 is None
        if not ok:
            raise MalformedCommand(
                f"Operandos inválidos para {k.value}: {self.arg1!r}, {self.arg2!r}",
                line=self.line,
            )

    def __str__(self) -> str:
        if self.text is not None:
            return self.text
        parts = [self.arg1.value if isinstance(self.arg1, ArithmeticOp) else self.kind.value]
        if isinstance(self.arg1, Segment):
            parts.append(self.arg1.value)
        elif isinstance(self.arg1, str):
            parts.append(self.arg1)
        if self.arg2 is not None:
            parts.append(str(self.arg2))
        return " ".join(parts)
