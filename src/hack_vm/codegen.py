# src/hack_vm/codegen.py
'''
generador de código VM -> ensamblador Hack y convención de llamadas

Cada comando VM se traduce a una secuencia fija de instrucciones Hack.
El estado de traducción (unidad actual, función actual, contador de
etiquetas únicas) vive en la instancia de CodeWriter; una sesión completa
debe usar una sola instancia para que las etiquetas internas no choquen.

Nota: eq/gt/lt comparan con la resta a-b y un salto sobre su signo. Si a y b
tienen signos opuestos y magnitudes grandes la resta desborda los 16 bits y
el resultado es incorrecto; es el comportamiento de la máquina y se conserva.
'''

from __future__ import annotations
from typing import List, Optional, TextIO

from .commands import ArithmeticOp, Command, CommandKind, Segment
from .diagnostics import InvalidSegment, IOFailure, MalformedCommand, TranslationError
from .regs import (
    SP, LCL, ARG, THIS, THAT,
    POINTER_BASE, POINTER_SIZE, TEMP_BASE, TEMP_SIZE, STACK_BASE,
    FRAME_REG, RET_REG, ADDR_REG,
)
from .lexer import is_vm_identifier
from .utils import MAX_A_VALUE

# Celdas guardadas por call: dirección de retorno + LCL, ARG, THIS, THAT
FRAME_SIZE = 5

BOOTSTRAP_SP = STACK_BASE + FRAME_SIZE
ENTRY_POINT = "Sys.init"

_INDIRECT = {
    Segment.LOCAL: LCL,
    Segment.ARGUMENT: ARG,
    Segment.THIS: THIS,
    Segment.THAT: THAT,
}

_BINARY_COMP = {
    ArithmeticOp.ADD: "D+M",
    ArithmeticOp.SUB: "M-D",
    ArithmeticOp.AND: "D&M",
    ArithmeticOp.OR: "D|M",
}

_UNARY_COMP = {
    ArithmeticOp.NEG: "-M",
    ArithmeticOp.NOT: "!M",
}

_COMPARE_JUMP = {
    ArithmeticOp.EQ: "JEQ",
    ArithmeticOp.GT: "JGT",
    ArithmeticOp.LT: "JLT",
}

class ListSink:
    """Sink en memoria; guarda las líneas emitidas."""

    def __init__(self) -> None:
        self.lines: List[str] = []
        self.closed = False

    def write(self, s: str) -> int:
        self.lines.extend(s.splitlines())
        return len(s)

    def close(self) -> None:
        self.closed = True

class CodeWriter:
    """Traduce comandos VM a ensamblador Hack sobre un sink de texto.

    Operaciones de sesión: constructor (adquiere el sink), set_file_name,
    write_init, dispatch y close (vacía y cierra una sola vez).
    """

    def __init__(self, out: Optional[TextIO] = None, *, annotate: bool = False) -> None:
        self.out = out if out is not None else ListSink()
        self.annotate = annotate
        self.file_name: Optional[str] = None
        self.function_name: Optional[str] = None
        self.label_counter = 0
        self._closed = False

    # ---- ciclo de vida ----

    def __enter__(self) -> "CodeWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if hasattr(self.out, "flush"):
                self.out.flush()
            self.out.close()
        except OSError as ex:
            raise IOFailure(f"No pude cerrar la salida: {ex}") from ex

    def write(self, line: str) -> None:
        try:
            self.out.write(line + "\n")
        except (OSError, ValueError) as ex:
            raise IOFailure(f"No pude escribir la salida: {ex}", file=self.file_name) from ex

    def _emit(self, *lines: str) -> None:
        for line in lines:
            self.write(line)

    # ---- estado de traducción ----

    def set_file_name(self, name: str) -> None:
        """Empieza una nueva unidad; califica los símbolos static.

        El nombre forma parte de símbolos Hack, así que debe ser un identificador VM.
        """
        if not is_vm_identifier(name):
            raise MalformedCommand(f"Nombre de unidad inválido: {name!r}", file=name,
                                   hint="letras, dígitos, '_', '.', ':'; sin dígito inicial")
        self.file_name = name
        self.function_name = None

    def unique_label(self, kind: str) -> str:
        """Etiqueta interna única para toda la sesión ('$' no es legal en la VM)."""
        self.label_counter += 1
        return f"${kind}.{self.label_counter}"

    def scoped_label(self, label: str) -> str:
        # fuera de funciones: '<unidad>$$L', distinto de 'f$L' aunque f se llame igual
        if self.function_name:
            return f"{self.function_name}${label}"
        if self.file_name:
            return f"{self.file_name}$${label}"
        return label

    def static_symbol(self, index: int) -> str:
        if not self.file_name:
            raise TranslationError("static usado antes de set_file_name",
                                   hint="el driver debe fijar la unidad actual")
        return f"{self.file_name}.{index}"

    # ---- bootstrap ----

    def write_init(self, entry: str = ENTRY_POINT) -> None:
        """SP = 256 + 5 y salto directo a entry, sin protocolo de llamada.

        La función de entrada nunca debe ejecutar return: no hay marco del llamador.
        """
        self._emit(f"@{BOOTSTRAP_SP}", "D=A", f"@{SP}", "M=D")
        self._emit(f"@{entry}", "0;JMP")

    # ---- despacho ----

    def dispatch(self, cmd: Command) -> None:
        """Traduce un comando; los errores se marcan con la unidad y línea."""
        try:
            if self.annotate:
                self.write(f"// {cmd}")
            self._dispatch(cmd)
        except TranslationError as ex:
            raise ex.located(line=cmd.line, file=self.file_name)

    def _dispatch(self, cmd: Command) -> None:
        k = cmd.kind
        if k is CommandKind.ARITHMETIC:
            self.write_arithmetic(cmd.arg1)
        elif k is CommandKind.PUSH or k is CommandKind.POP:
            self.write_push_pop(k, cmd.arg1, cmd.arg2)
        elif k is CommandKind.LABEL:
            self.write_label(cmd.arg1)
        elif k is CommandKind.GOTO:
            self.write_goto(cmd.arg1)
        elif k is CommandKind.IF_GOTO:
            self.write_if(cmd.arg1)
        elif k is CommandKind.FUNCTION:
            self.write_function(cmd.arg1, cmd.arg2)
        elif k is CommandKind.CALL:
            self.write_call(cmd.arg1, cmd.arg2)
        elif k is CommandKind.RETURN:
            self.write_return()
        else:
            raise MalformedCommand(f"Tipo de comando no soportado: {k}")

    # ---- aritmética ----

    def write_arithmetic(self, op: ArithmeticOp) -> None:
        if op in _BINARY_COMP:
            # D = b; A -> a; a = a op b; SP--
            self._emit(f"@{SP}", "AM=M-1", "D=M", "A=A-1", f"M={_BINARY_COMP[op]}")
        elif op in _UNARY_COMP:
            self._emit(f"@{SP}", "A=M-1", f"M={_UNARY_COMP[op]}")
        elif op in _COMPARE_JUMP:
            self._write_compare(_COMPARE_JUMP[op])
        else:
            raise MalformedCommand(f"Operación aritmética desconocida: {op!r}")

    def _write_compare(self, jump: str) -> None:
        true_label = self.unique_label("TRUE")
        end_label = self.unique_label("END")
        self._emit(
            f"@{SP}", "AM=M-1", "D=M", "A=A-1", "D=M-D",
            f"@{true_label}", f"D;{jump}",
            f"@{SP}", "A=M-1", "M=0",
            f"@{end_label}", "0;JMP",
            f"({true_label})",
            f"@{SP}", "A=M-1", "M=-1",
            f"({end_label})",
        )

    # ---- push / pop ----

    def write_push_pop(self, kind: CommandKind, segment: Segment, index: int) -> None:
        if kind is CommandKind.PUSH:
            self._push(segment, index)
        elif kind is CommandKind.POP:
            self._pop(segment, index)
        else:
            raise MalformedCommand(f"Se esperaba push o pop, no {kind.value}")

    def _direct_address(self, segment: Segment, index: int) -> str:
        """Dirección fija de static/temp/pointer como operando de '@'."""
        if segment is Segment.STATIC:
            return self.static_symbol(index)
        if segment is Segment.TEMP:
            if index >= TEMP_SIZE:
                raise InvalidSegment(f"Índice fuera de rango para temp: {index}", hint="0..7")
            return str(TEMP_BASE + index)
        if segment is Segment.POINTER:
            if index >= POINTER_SIZE:
                raise InvalidSegment(f"Índice fuera de rango para pointer: {index}", hint="0..1")
            return str(POINTER_BASE + index)
        raise InvalidSegment(f"Segmento sin dirección fija: {segment}")

    def _offset(self, segment: Segment, index: int) -> int:
        """Índice de un segmento indirecto; debe caber en una instrucción A."""
        if index > MAX_A_VALUE:
            raise InvalidSegment(f"Índice fuera de rango para {segment.value}: {index}",
                                 hint="0..32767")
        return index

    def _push_d(self) -> None:
        self._emit(f"@{SP}", "A=M", "M=D", f"@{SP}", "M=M+1")

    def _push(self, segment: Segment, index: int) -> None:
        if segment is Segment.CONSTANT:
            if index > MAX_A_VALUE:
                raise InvalidSegment(f"Constante fuera de rango: {index}", hint="0..32767")
            self._emit(f"@{index}", "D=A")
        elif segment in _INDIRECT:
            index = self._offset(segment, index)
            self._emit(f"@{_INDIRECT[segment]}", "D=M", f"@{index}", "A=D+A", "D=M")
        elif isinstance(segment, Segment):
            self._emit(f"@{self._direct_address(segment, index)}", "D=M")
        else:
            raise InvalidSegment(f"Segmento inválido: {segment!r}")
        self._push_d()

    def _pop(self, segment: Segment, index: int) -> None:
        if segment is Segment.CONSTANT:
            raise InvalidSegment("No se puede hacer pop sobre constant")
        if segment in _INDIRECT:
            # la dirección se calcula antes de leer la pila: D es el único camino
            index = self._offset(segment, index)
            self._emit(f"@{_INDIRECT[segment]}", "D=M", f"@{index}", "D=D+A",
                       f"@{ADDR_REG}", "M=D")
            self._emit(f"@{SP}", "AM=M-1", "D=M", f"@{ADDR_REG}", "A=M", "M=D")
        elif isinstance(segment, Segment):
            addr = self._direct_address(segment, index)
            self._emit(f"@{SP}", "AM=M-1", "D=M", f"@{addr}", "M=D")
        else:
            raise InvalidSegment(f"Segmento inválido: {segment!r}")

    # ---- control de flujo ----

    def write_label(self, label: str) -> None:
        self.write(f"({self.scoped_label(label)})")

    def write_goto(self, label: str) -> None:
        self._emit(f"@{self.scoped_label(label)}", "0;JMP")

    def write_if(self, label: str) -> None:
        self._emit(f"@{SP}", "AM=M-1", "D=M", f"@{self.scoped_label(label)}", "D;JNE")

    # ---- funciones ----

    def write_function(self, name: str, n_locals: int) -> None:
        self.function_name = name
        self.write(f"({name})")
        for _ in range(n_locals):
            self._push(Segment.CONSTANT, 0)

    def write_call(self, name: str, n_args: int) -> None:
        if n_args + FRAME_SIZE > MAX_A_VALUE:
            raise MalformedCommand(f"Demasiados argumentos en call {name}: {n_args}",
                                   hint=f"0..{MAX_A_VALUE - FRAME_SIZE}")
        ret = self.unique_label("RET")
        self._emit(f"@{ret}", "D=A")
        self._push_d()
        for ptr in (LCL, ARG, THIS, THAT):
            self._emit(f"@{ptr}", "D=M")
            self._push_d()
        # ARG = SP - n - 5 ; LCL = SP
        self._emit(f"@{SP}", "D=M", f"@{n_args + FRAME_SIZE}", "D=D-A", f"@{ARG}", "M=D")
        self._emit(f"@{SP}", "D=M", f"@{LCL}", "M=D")
        self._emit(f"@{name}", "0;JMP")
        self.write(f"({ret})")

    def write_return(self) -> None:
        # FRAME = LCL ; RET = *(FRAME-5), antes de que pop argument 0 lo pise
        self._emit(f"@{LCL}", "D=M", f"@{FRAME_REG}", "M=D")
        self._emit(f"@{FRAME_SIZE}", "A=D-A", "D=M", f"@{RET_REG}", "M=D")
        self._pop(Segment.ARGUMENT, 0)
        self._emit(f"@{ARG}", "D=M+1", f"@{SP}", "M=D")
        # THAT, THIS, ARG, LCL desde FRAME-1..FRAME-4
        for ptr in (THAT, THIS, ARG, LCL):
            self._emit(f"@{FRAME_REG}", "AM=M-1", "D=M", f"@{ptr}", "M=D")
        self._emit(f"@{RET_REG}", "A=M", "0;JMP")
