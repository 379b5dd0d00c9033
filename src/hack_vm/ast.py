'''
dataclases de AST del ensamblador Hack (Label, AInstruction, CInstruction, Operand)
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Union

# ---- Nodos a nivel de fuente (AST/IR) ----

@dataclass(frozen=True)
class Label:
    """Pseudo-instrucción '(NOMBRE)': marca la dirección de ROM siguiente."""
    name: str
    line: int
    col: int = 1

@dataclass(frozen=True)
class AInstruction:
    """Instrucción '@valor' o '@símbolo'."""
    operand: 'Operand'
    line: int
    col: int = 1

@dataclass(frozen=True)
class CInstruction:
    """Instrucción 'dest=comp;jump' con sus tres campos textuales."""
    dest: str
    comp: str
    jump: str
    line: int
    col: int = 1

# ---- Operandos ----

@dataclass(frozen=True)
class Imm:
    """Constante decimal de 15 bits."""
    value: int

@dataclass(frozen=True)
class Sym:
    """Símbolo: etiqueta, variable o predefinido."""
    name: str

Operand = Union[Imm, Sym]
Node = Union[Label, AInstruction, CInstruction]
