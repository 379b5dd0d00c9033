from __future__ import annotations
from typing import Iterable, List
from .utils import to_bin16
from .encoding import Encoded

def to_bin_lines(words: Iterable[Encoded]) -> List[str]:
    return [to_bin16(w.word) for w in words]

def write_lines(lines: Iterable[str], path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        for line in lines:
            f.write(line + "\n")

def write_hack(words: Iterable[Encoded], path: str) -> None:
    write_lines(to_bin_lines(words), path)
