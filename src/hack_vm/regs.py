'''
mapa de memoria Hack: símbolos predefinidos, registros virtuales R0..R15 y bases de segmentos
'''

from __future__ import annotations
from typing import Dict

# Celdas de puntero del protocolo de la VM
SP = "SP"
LCL = "LCL"
ARG = "ARG"
THIS = "THIS"
THAT = "THAT"

# Regiones fijas
POINTER_BASE = 3      # RAM[3..4] = THIS, THAT
TEMP_BASE = 5         # RAM[5..12]
TEMP_SIZE = 8
POINTER_SIZE = 2
VAR_BASE = 16         # primera variable del ensamblador / celdas static
STACK_BASE = 256
SCREEN = 16384
KBD = 24576
RAM_SIZE = 32768

# Registros de trabajo usados por el generador
FRAME_REG = "R15"     # copia de LCL durante return
RET_REG = "R13"       # dirección de retorno durante return
ADDR_REG = "R14"      # dirección destino de pop

# Símbolos predefinidos del ensamblador
PREDEFINED: Dict[str, int] = {
    SP: 0, LCL: 1, ARG: 2, THIS: 3, THAT: 4,
    **{f"R{n}": n for n in range(16)},
    "SCREEN": SCREEN, "KBD": KBD,
}
