'''
aritmética de palabras de 16 bits (u16, sign_extend, formatos binarios)
'''

from __future__ import annotations

# Máscara para 16 bits sin signo
U16_MASK = 0xFFFF

# Mayor valor representable en una instrucción A (15 bits)
MAX_A_VALUE = 0x7FFF

def u16(x: int) -> int:
    """Fuerza el valor al rango de 16 bits sin signo."""
    return x & U16_MASK

def sign_extend(x: int, bits: int = 16) -> int:
    """Extiende el signo de x, asumiendo que cabe en 'bits' bits (complemento a dos)."""
    if bits <= 0:
        raise ValueError("bits debe ser positivo")
    mask = (1 << bits) - 1
    x &= mask
    sign_bit = 1 << (bits - 1)
    return (x ^ sign_bit) - sign_bit

def to_signed16(x: int) -> int:
    """Interpreta una palabra de 16 bits como entero con signo."""
    return sign_extend(x, 16)

def is_unsigned_nbit(x: int, n: int) -> bool:
    """Devuelve True si x está en [0, 2^n) (sin signo de n bits)."""
    if n <= 0:
        raise ValueError("n debe ser positivo")
    return 0 <= x < (1 << n)

def to_bin16(x: int) -> str:
    """Representación binaria de 16 bits (cadena)."""
    return format(u16(x), "016b")

def from_bin16(s: str) -> int:
    """Convierte una línea '0101...' de 16 caracteres en palabra."""
    t = s.strip()
    if len(t) != 16 or any(c not in "01" for c in t):
        raise ValueError(f"Palabra binaria inválida: '{s}'")
    return int(t, 2)
