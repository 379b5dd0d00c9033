# src/hack_vm/asm_parser.py
from __future__ import annotations
from typing import List, Tuple, Optional

from .lexer import strip_comment, split_label, split_c_instruction, is_symbol, NUMBER_RE
from .ast import Label, AInstruction, CInstruction, Imm, Sym, Node
from .diagnostics import error, Diagnostic
from .utils import is_unsigned_nbit

def parse(text: str, *, filename: Optional[str] = None) -> Tuple[List[Node], List[Diagnostic]]:
    """
    Devuelve (nodes, diagnostics) donde nodes es una lista de:
      - Label(name, line, col)
      - AInstruction(operand, line, col)
      - CInstruction(dest, comp, jump, line, col)

    Reglas:
      - Comentarios: '//' hasta fin de línea.
      - Etiquetas: '(NOMBRE)' solas en la línea.
      - '@' seguido de un decimal 0..32767 o de un símbolo.
      - Resto: 'dest=comp;jump' (la validez de los campos se revisa al codificar).
    """
    nodes: List[Node] = []
    diags: List[Diagnostic] = []

    for lineno, raw in enumerate(text.splitlines(), start=1):
        core = strip_comment(raw)
        if not core:
            continue

        label = split_label(core)
        if label is not None:
            if not is_symbol(label):
                diags.append(error(f"Etiqueta inválida: '{label}'", line=lineno, file=filename))
                continue
            nodes.append(Label(name=label, line=lineno))
            continue

        if core.startswith('@'):
            tok = core[1:].strip()
            if NUMBER_RE.match(tok):
                value = int(tok)
                if not is_unsigned_nbit(value, 15):
                    diags.append(error(f"Constante fuera de rango: {value}", line=lineno, file=filename,
                                       hint="las instrucciones A admiten 0..32767"))
                    continue
                nodes.append(AInstruction(operand=Imm(value), line=lineno))
            elif is_symbol(tok):
                nodes.append(AInstruction(operand=Sym(tok), line=lineno))
            else:
                diags.append(error(f"Operando inválido: '{tok}'", line=lineno, file=filename))
            continue

        dest, comp, jump = split_c_instruction(core)
        if not comp:
            diags.append(error(f"Instrucción sin campo comp: '{core}'", line=lineno, file=filename))
            continue
        nodes.append(CInstruction(dest=dest, comp=comp, jump=jump, line=lineno))

    return nodes, diags
