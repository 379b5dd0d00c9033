from __future__ import annotations
import argparse, sys
from pathlib import Path
from typing import Iterable, List, Optional, TextIO, Tuple

from .parser import iter_commands
from .codegen import CodeWriter, ListSink, ENTRY_POINT
from .diagnostics import IOFailure, TranslationError

VM_SUFFIX = ".vm"
ASM_SUFFIX = ".asm"

def translate_units(
    units: Iterable[Tuple[str, Iterable[str]]],
    writer: CodeWriter,
    *,
    bootstrap: bool = False,
    entry: str = ENTRY_POINT,
) -> None:
    """Traduce unidades (nombre, líneas) en orden sobre un mismo CodeWriter.

    No cierra el writer; el llamador decide cuándo termina la sesión.
    """
    if bootstrap:
        writer.write_init(entry)
    for name, lines in units:
        writer.set_file_name(name)
        for cmd in iter_commands(lines, filename=name):
            writer.dispatch(cmd)

def translate_text(text: str, *, unit: str = "Main", bootstrap: bool = False,
                   annotate: bool = False) -> List[str]:
    """Traduce una unidad en memoria y devuelve las líneas de ensamblador."""
    sink = ListSink()
    with CodeWriter(sink, annotate=annotate) as writer:
        translate_units([(unit, text.splitlines())], writer, bootstrap=bootstrap)
    return sink.lines

def translate_many(units: Iterable[Tuple[str, str]], *, bootstrap: bool = True,
                   annotate: bool = False) -> List[str]:
    """Como translate_text pero con varias unidades y un solo contador de etiquetas."""
    sink = ListSink()
    with CodeWriter(sink, annotate=annotate) as writer:
        translate_units(((name, text.splitlines()) for name, text in units),
                        writer, bootstrap=bootstrap)
    return sink.lines

def collect_sources(path: Path) -> List[Path]:
    """Un archivo .vm, o todos los .vm de un directorio ordenados por nombre."""
    if path.is_dir():
        return sorted(p for p in path.iterdir() if p.suffix == VM_SUFFIX and p.is_file())
    if path.suffix != VM_SUFFIX:
        raise TranslationError(f"Se esperaba un archivo {VM_SUFFIX}: {path}",
                               hint=f"o un directorio con archivos {VM_SUFFIX}")
    return [path]

def default_output(path: Path) -> Path:
    if path.is_dir():
        return path / (path.resolve().name + ASM_SUFFIX)
    return path.with_suffix(ASM_SUFFIX)

def _open_output(path: Path) -> TextIO:
    try:
        return open(path, "w", encoding="utf-8")
    except OSError as ex:
        raise IOFailure(f"No pude abrir {path}: {ex}") from ex

def translate_path(path: Path, output: Optional[Path] = None, *,
                   bootstrap: Optional[bool] = None, annotate: bool = False) -> Path:
    """Traduce un archivo o directorio; devuelve la ruta escrita.

    bootstrap=None aplica la política por defecto: sólo para directorios.
    """
    sources = collect_sources(path)
    if not sources:
        raise TranslationError(f"No hay archivos {VM_SUFFIX} en {path}")
    if bootstrap is None:
        bootstrap = path.is_dir()
    out_path = output if output is not None else default_output(path)
    if out_path.resolve() in {src.resolve() for src in sources}:
        raise TranslationError(f"La salida {out_path} es también una entrada")

    out = _open_output(out_path)
    try:
        with CodeWriter(out, annotate=annotate) as writer:
            if bootstrap:
                writer.write_init()
            for src in sources:
                with open(src, "r", encoding="utf-8") as f:
                    translate_units([(src.stem, f)], writer)
    except (TranslationError, OSError):
        # una sesión fallida no deja salida parcial
        out.close()
        out_path.unlink(missing_ok=True)
        raise
    return out_path

def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Hack VM translator (VM -> Hack assembly)")
    ap.add_argument("source", help="archivo .vm o directorio con archivos .vm")
    ap.add_argument("-o", "--output", help="archivo .asm de salida")
    boot = ap.add_mutually_exclusive_group()
    boot.add_argument("--bootstrap", dest="bootstrap", action="store_true", default=None,
                      help="emitir el código de arranque (SP=261, salto a Sys.init)")
    boot.add_argument("--no-bootstrap", dest="bootstrap", action="store_false",
                      help="no emitir el código de arranque")
    ap.add_argument("--annotate", action="store_true",
                    help="anteponer cada comando VM como comentario")
    args = ap.parse_args(argv)

    src = Path(args.source)
    if not src.exists():
        print(f"ERROR: no pude leer {src}: no existe", file=sys.stderr)
        return 2

    try:
        out = translate_path(src, Path(args.output) if args.output else None,
                             bootstrap=args.bootstrap, annotate=args.annotate)
    except IOFailure as ex:
        print(ex, file=sys.stderr)
        return 3
    except TranslationError as ex:
        print(ex, file=sys.stderr)
        return 1
    except OSError as ex:
        print(f"ERROR: no pude leer {src}: {ex}", file=sys.stderr)
        return 2

    print(f"OK: {src} → {out}")
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
