from __future__ import annotations
import re

COMMENT_SPLIT_RE = re.compile(r"//")

def strip_comment(line: str) -> str:
    """Remove comments starting with '//'"""
    m = COMMENT_SPLIT_RE.split(line, maxsplit=1)
    if not m:
        return line.strip()
    return m[0].strip()

# VM identifiers and Hack symbols share this shape; '$' is only legal in Hack
VM_IDENT_RE = re.compile(r"^[A-Za-z_.:][A-Za-z0-9_.:]*$")
SYMBOL_RE = re.compile(r"^[A-Za-z_.$:][A-Za-z0-9_.$:]*$")
NUMBER_RE = re.compile(r"^\d+$")

def is_vm_identifier(token: str) -> bool:
    return bool(VM_IDENT_RE.match(token))

def is_symbol(token: str) -> bool:
    return bool(SYMBOL_RE.match(token))

def split_words(line: str):
    """Split a VM line into (keyword, [operands])."""
    parts = line.split()
    if not parts:
        return "", []
    return parts[0], parts[1:]

LABEL_RE = re.compile(r"^\((.*)\)$")

def split_label(line: str):
    """Return the name of a '(LABEL)' line, else None."""
    m = LABEL_RE.match(line)
    if not m:
        return None
    return m.group(1).strip()

def split_c_instruction(line: str):
    """Split 'dest=comp;jump' into (dest, comp, jump); missing parts are ''."""
    s = "".join(line.split())
    dest, comp, jump = "", s, ""
    if "=" in comp:
        dest, comp = comp.split("=", 1)
    if ";" in comp:
        comp, jump = comp.split(";", 1)
    return dest, comp, jump
