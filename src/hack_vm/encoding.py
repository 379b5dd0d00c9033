# src/hack_vm/encoding.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .ast import AInstruction, CInstruction, Imm, Sym, Node
from .isa import C_PREFIX, comp as isa_comp, dest as isa_dest, jump as isa_jump
from .utils import u16, MAX_A_VALUE
from .diagnostics import Diagnostic, error

# ---------------- Resultados de codificación ----------------

@dataclass(frozen=True)
class Encoded:
    word: int     # u16
    pc: int       # dirección de ROM de esta instrucción
    line: int
    col: int
    text: str

@dataclass(frozen=True)
class EncodeResult:
    words: List[Encoded]
    diagnostics: List[Diagnostic]

# ---------------- Helpers de empaquetado de bits ----------------

def _pack_A(value: int) -> int:
    return u16(value & MAX_A_VALUE)

def _pack_C(comp_field: int, dest_bits: int, jump_bits: int) -> int:
    return u16(C_PREFIX |
               (comp_field & 0x7F) << 6 |
               (dest_bits & 0x7) << 3 |
               (jump_bits & 0x7))

def _c_text(ins: CInstruction) -> str:
    s = ins.comp
    if ins.dest:
        s = f"{ins.dest}={s}"
    if ins.jump:
        s = f"{s};{ins.jump}"
    return s

# ---------------- Codificador principal ----------------

def encode(nodes: List[Node], symtab: Dict[str, int]) -> EncodeResult:
    diags: List[Diagnostic] = []
    words: List[Encoded] = []
    pc = 0

    for n in nodes:
        word = None
        if isinstance(n, AInstruction):
            op = n.operand
            if isinstance(op, Imm):
                word = _pack_A(op.value)
                text = f"@{op.value}"
            elif isinstance(op, Sym):
                addr = symtab.get(op.name)
                if addr is None:
                    diags.append(error(f"Símbolo no definido: {op.name}", line=n.line, col=n.col))
                else:
                    word = _pack_A(addr)
                text = f"@{op.name}"
            else:
                diags.append(error("Operando de '@' inválido", line=n.line, col=n.col))
        elif isinstance(n, CInstruction):
            text = _c_text(n)
            try:
                word = _pack_C(isa_comp(n.comp).field, isa_dest(n.dest), isa_jump(n.jump))
            except KeyError as ex:
                diags.append(error(ex.args[0], line=n.line, col=n.col, hint=text))
        else:
            # etiquetas: no ocupan ROM
            continue

        # Registrar palabra y avanzar PC
        if word is not None:
            words.append(Encoded(word=word, pc=pc, line=n.line, col=n.col, text=text))
        pc += 1

    return EncodeResult(words=words, diagnostics=diags)
