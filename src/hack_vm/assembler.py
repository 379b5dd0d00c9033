from __future__ import annotations
import argparse, sys
from typing import Tuple

from .asm_parser import parse
from .linker import first_pass, LinkResult
from .encoding import encode, EncodeResult
from .writers import write_hack

def assemble_text(text: str, *, filename: str | None = None) -> Tuple[list, list, LinkResult, EncodeResult]:
    """Parsea, hace PASADA 1 (etiquetas y variables) y PASADA 2 (codificación).
    Devuelve (nodes, diagnostics_totales, link_result, enc_result)."""
    nodes, diags_parse = parse(text, filename=filename)
    link = first_pass(nodes)
    enc = encode(nodes, link.symtab)
    diags = list(diags_parse) + list(link.diagnostics) + list(enc.diagnostics)
    return nodes, diags, link, enc

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Hack two-pass assembler")
    ap.add_argument("source", help="archivo .asm de entrada")
    ap.add_argument("out_hack", help="archivo de salida .hack (palabras binarias en ASCII)")
    args = ap.parse_args(argv)

    try:
        with open(args.source, "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as ex:
        print(f"ERROR: no pude leer {args.source}: {ex}", file=sys.stderr)
        return 2

    nodes, diags, link, enc = assemble_text(text, filename=args.source)

    had_error = False
    for d in diags:
        # imprimimos todo; si hay error, devolvemos código 1
        print(d, file=sys.stderr)
        if d.severity == "error":
            had_error = True

    if had_error:
        return 1

    try:
        write_hack(enc.words, args.out_hack)
    except OSError as ex:
        print(f"ERROR al escribir salidas: {ex}", file=sys.stderr)
        return 3

    print(f"OK: {len(enc.words)} instrucciones → {args.out_hack}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
