'''
tabla formal Hack (campos comp/dest/jump de las instrucciones C)
'''

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict

@dataclass(frozen=True)
class CompSpec:
    """Especificación de un campo comp.

    - a: bit que elige A (0) o M (1) como segundo operando de la ALU
    - bits: zx nx zy ny f no, en ese orden (6 bits)
    """
    a: int
    bits: int

    @property
    def field(self) -> int:
        """Los 7 bits a+cccccc tal como van en la palabra."""
        return (self.a << 6) | self.bits

# Prefijo de toda instrucción C: 111a cccc ccdd djjj
C_PREFIX = 0b111 << 13

COMP: Dict[str, CompSpec] = {}

def _add(name: str, bits: int, *aliases: str):
    for a, reg in ((0, "A"), (1, "M")):
        if "X" not in name and a == 1:
            continue
        spec = CompSpec(a, bits)
        COMP[name.replace("X", reg)] = spec
        for alias in aliases:
            COMP[alias.replace("X", reg)] = spec

# Constantes y D
_add("0",   0b101010)
_add("1",   0b111111)
_add("-1",  0b111010)
_add("D",   0b001100)
_add("!D",  0b001101)
_add("-D",  0b001111)
_add("D+1", 0b011111, "1+D")
_add("D-1", 0b001110)

# Con A (a=0) o M (a=1)
_add("X",   0b110000)
_add("!X",  0b110001)
_add("-X",  0b110011)
_add("X+1", 0b110111, "1+X")
_add("X-1", 0b110010)
_add("D+X", 0b000010, "X+D")
_add("D-X", 0b010011)
_add("X-D", 0b000111)
_add("D&X", 0b000000, "X&D")
_add("D|X", 0b010101, "X|D")

# dest: d1=A, d2=D, d3=M
_DEST_BIT = {"A": 0b100, "D": 0b010, "M": 0b001}

JUMP: Dict[str, int] = {
    "":    0b000,
    "JGT": 0b001,
    "JEQ": 0b010,
    "JGE": 0b011,
    "JLT": 0b100,
    "JNE": 0b101,
    "JLE": 0b110,
    "JMP": 0b111,
}

def comp(field: str) -> CompSpec:
    """Devuelve la especificación de un campo comp."""
    if field not in COMP:
        raise KeyError(f"Campo comp desconocido: {field}")
    return COMP[field]

def dest(field: str) -> int:
    """Codifica un campo dest ('', 'M', 'AM', 'AMD', ...) en 3 bits."""
    bits = 0
    for ch in field:
        b = _DEST_BIT.get(ch)
        if b is None or bits & b:
            raise KeyError(f"Campo dest inválido: {field}")
        bits |= b
    return bits

def jump(field: str) -> int:
    """Codifica un campo jump en 3 bits."""
    if field not in JUMP:
        raise KeyError(f"Campo jump desconocido: {field}")
    return JUMP[field]
