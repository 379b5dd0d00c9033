# src/hack_vm/emulator.py
'''
emulador de la CPU Hack (ROM de palabras de 16 bits, RAM de 32K, registros A/D/PC)
'''

from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Union

from .assembler import assemble_text
from .encoding import Encoded
from .regs import RAM_SIZE, STACK_BASE, PREDEFINED
from .utils import u16, to_signed16, from_bin16

# Las direcciones de RAM y ROM son de 15 bits
ADDR_MASK = 0x7FFF

class EmulatorError(Exception):
    pass

def alu(x: int, y: int, c: int) -> int:
    """ALU Hack: c = zx nx zy ny f no (bit 5 .. bit 0)."""
    if c & 0b100000:
        x = 0
    if c & 0b010000:
        x = ~x
    if c & 0b001000:
        y = 0
    if c & 0b000100:
        y = ~y
    out = (x + y) if c & 0b000010 else (x & y)
    if c & 0b000001:
        out = ~out
    return u16(out)

class Emulator:
    """Ejecuta palabras Hack ya ensambladas.

    El programa termina cuando el PC sale de la ROM; un bucle final
    se detiene con el predicado 'until' de run().
    """

    def __init__(self, program: Iterable[Union[int, Encoded]], *,
                 symtab: Optional[Dict[str, int]] = None) -> None:
        self.rom: List[int] = [w.word if isinstance(w, Encoded) else u16(w) for w in program]
        self.symtab = dict(symtab) if symtab is not None else dict(PREDEFINED)
        self.ram: List[int] = [0] * RAM_SIZE
        self.a = 0
        self.d = 0
        self.pc = 0
        self.steps = 0

    @classmethod
    def from_asm(cls, text: str, *, filename: str | None = None) -> "Emulator":
        """Ensambla y carga; lanza EmulatorError si hay errores de ensamblado."""
        _, diags, link, enc = assemble_text(text, filename=filename)
        errors = [d for d in diags if d.severity == "error"]
        if errors:
            raise EmulatorError("\n".join(str(d) for d in errors))
        return cls(enc.words, symtab=link.symtab)

    @classmethod
    def from_hack(cls, lines: Iterable[str]) -> "Emulator":
        """Carga un programa .hack (una palabra binaria por línea)."""
        return cls(from_bin16(line) for line in lines if line.strip())

    # ---- acceso a memoria ----

    def address(self, symbol: str) -> int:
        if symbol not in self.symtab:
            raise EmulatorError(f"Símbolo desconocido: {symbol}")
        return self.symtab[symbol]

    def peek(self, where: Union[int, str]) -> int:
        """Lee una celda (con signo) por dirección o por símbolo."""
        addr = self.address(where) if isinstance(where, str) else where
        return to_signed16(self.ram[addr & ADDR_MASK])

    def poke(self, where: Union[int, str], value: int) -> None:
        addr = self.address(where) if isinstance(where, str) else where
        self.ram[addr & ADDR_MASK] = u16(value)

    def stack(self, base: int = STACK_BASE) -> List[int]:
        """Valores (con signo) entre la base de la pila y SP."""
        return [to_signed16(v) for v in self.ram[base:self.ram[0]]]

    @property
    def halted(self) -> bool:
        return self.pc >= len(self.rom)

    # ---- ejecución ----

    def step(self) -> None:
        if self.halted:
            raise EmulatorError(f"PC fuera de la ROM: {self.pc}")
        ins = self.rom[self.pc]
        self.steps += 1
        if not ins & 0x8000:
            self.a = ins
            self.pc += 1
            return

        a_old = self.a
        addr = a_old & ADDR_MASK
        y = self.ram[addr] if ins & 0x1000 else a_old
        out = alu(self.d, y, (ins >> 6) & 0x3F)

        # escrituras: M usa la dirección previa a actualizar A
        if ins & 0b001000:
            self.ram[addr] = out
        if ins & 0b100000:
            self.a = out
        if ins & 0b010000:
            self.d = out

        s = to_signed16(out)
        j = ins & 0b111
        taken = (j & 0b100 and s < 0) or (j & 0b010 and s == 0) or (j & 0b001 and s > 0)
        self.pc = (a_old & ADDR_MASK) if taken else self.pc + 1

    def run(self, max_steps: int = 1_000_000,
            until: Optional[Callable[["Emulator"], bool]] = None) -> int:
        """Ejecuta hasta salir de la ROM o cumplir 'until'; devuelve los pasos dados."""
        start = self.steps
        while not self.halted:
            if until is not None and until(self):
                break
            if self.steps - start >= max_steps:
                raise EmulatorError(f"Se superaron {max_steps} pasos (PC={self.pc})")
            self.step()
        return self.steps - start

    def run_to(self, label: str, max_steps: int = 1_000_000) -> int:
        """Ejecuta hasta que el PC alcance la etiqueta dada."""
        target = self.address(label)
        return self.run(max_steps, until=lambda emu: emu.pc == target)
