# src/hack_vm/linker.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List

from .ast import Label, AInstruction, CInstruction, Sym, Node
from .diagnostics import Diagnostic, error, warning
from .regs import PREDEFINED, VAR_BASE, SCREEN

# ---------- Resultados de la pasada 1 ----------

@dataclass(frozen=True)
class LinkResult:
    symtab: Dict[str, int]
    labels: Dict[str, int]
    variables: Dict[str, int]
    rom_size: int
    diagnostics: List[Diagnostic]

# ---------- Pasada 1 (etiquetas y variables) ----------

def first_pass(
    nodes: List[Node],
    *,
    var_base: int = VAR_BASE,
    predefined: Dict[str, int] | None = None,
) -> LinkResult:
    """Asigna direcciones de ROM a las etiquetas y de RAM a las variables.

    Las variables son símbolos de '@' que no son etiquetas ni predefinidos;
    reciben celdas consecutivas desde var_base en orden de primera aparición.
    """
    symtab: Dict[str, int] = dict(PREDEFINED if predefined is None else predefined)
    labels: Dict[str, int] = {}
    variables: Dict[str, int] = {}
    diags: List[Diagnostic] = []

    pc = 0
    for n in nodes:
        if isinstance(n, Label):
            if n.name in symtab:
                diags.append(error(f"Etiqueta/símbolo redefinido: {n.name}", line=n.line, col=n.col))
            else:
                symtab[n.name] = pc
                labels[n.name] = pc
            continue
        if isinstance(n, (AInstruction, CInstruction)):
            # Cada instrucción Hack ocupa una palabra de ROM
            pc += 1
            continue
        diags.append(warning("Nodo de AST desconocido en linker"))

    next_var = var_base
    for n in nodes:
        if isinstance(n, AInstruction) and isinstance(n.operand, Sym):
            name = n.operand.name
            if name in symtab:
                continue
            if next_var >= SCREEN:
                diags.append(error(f"Sin RAM para la variable {name}", line=n.line, col=n.col))
                continue
            symtab[name] = next_var
            variables[name] = next_var
            next_var += 1

    return LinkResult(
        symtab=symtab,
        labels=labels,
        variables=variables,
        rom_size=pc,
        diagnostics=diags,
    )
