# src/hack_vm/parser.py
from __future__ import annotations
from typing import Iterable, Iterator, List, Optional, Union

from .lexer import strip_comment, split_words, is_vm_identifier, NUMBER_RE
from .commands import ARITY, KEYWORDS, ArithmeticOp, Command, CommandKind, Segment
from .diagnostics import MalformedCommand, TranslationError

def _parse_count(token: str, *, what: str, line: int, filename: Optional[str]) -> int:
    if not NUMBER_RE.match(token):
        raise MalformedCommand(f"{what} debe ser un entero no negativo: '{token}'",
                               line=line, file=filename)
    return int(token)

def _parse_name(token: str, *, line: int, filename: Optional[str]) -> str:
    if not is_vm_identifier(token):
        raise MalformedCommand(f"Identificador inválido: '{token}'", line=line, file=filename,
                               hint="letras, dígitos, '_', '.', ':'; sin dígito inicial")
    return token

def parse_line(core: str, *, line: int = 0, filename: Optional[str] = None) -> Command:
    """Convierte una línea ya sin comentarios en un Command."""
    word, ops = split_words(core)
    try:
        op = ArithmeticOp(word)
    except ValueError:
        op = None
    kind = CommandKind.ARITHMETIC if op is not None else KEYWORDS.get(word)
    if kind is None:
        raise MalformedCommand(f"Comando desconocido: '{word}'", line=line, file=filename)
    if len(ops) != ARITY[kind]:
        raise MalformedCommand(
            f"{word} espera {ARITY[kind]} operando(s), recibió {len(ops)}",
            line=line, file=filename,
        )

    if kind is CommandKind.ARITHMETIC:
        return Command(kind, op, line=line, text=core)
    if kind in (CommandKind.PUSH, CommandKind.POP):
        try:
            seg = Segment.from_name(ops[0])
        except TranslationError as ex:
            raise ex.located(line=line, file=filename)
        idx = _parse_count(ops[1], what="El índice", line=line, filename=filename)
        return Command(kind, seg, idx, line=line, text=core)
    if kind in (CommandKind.LABEL, CommandKind.GOTO, CommandKind.IF_GOTO):
        return Command(kind, _parse_name(ops[0], line=line, filename=filename), line=line, text=core)
    if kind in (CommandKind.FUNCTION, CommandKind.CALL):
        name = _parse_name(ops[0], line=line, filename=filename)
        what = "nLocals" if kind is CommandKind.FUNCTION else "nArgs"
        n = _parse_count(ops[1], what=what, line=line, filename=filename)
        return Command(kind, name, n, line=line, text=core)
    return Command(CommandKind.RETURN, line=line, text=core)

def iter_commands(source: Union[str, Iterable[str]], *, filename: Optional[str] = None) -> Iterator[Command]:
    """
    Produce perezosamente un Command por cada línea no vacía y no comentario.

    Reglas:
      - Comentarios: '//' hasta fin de línea (línea completa o al final).
      - Errores: el primer comando mal formado lanza MalformedCommand o
        InvalidSegment con archivo y línea; no hay recuperación.
    """
    lines = source.splitlines() if isinstance(source, str) else source
    for lineno, raw in enumerate(lines, start=1):
        core = strip_comment(raw)
        if not core:
            continue
        yield parse_line(core, line=lineno, filename=filename)

def parse(text: str, *, filename: Optional[str] = None) -> List[Command]:
    return list(iter_commands(text, filename=filename))
