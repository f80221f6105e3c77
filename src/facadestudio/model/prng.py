"""
Deterministic PRNG
==================
A small seedable generator used by the facade layout.

The mixer works on a 32-bit accumulator: every draw adds a fixed odd
constant, then applies multiply/xor-shift mixing. Identical seeds produce
identical infinite sequences. It is NOT cryptographically strong.
"""
from __future__ import annotations

_MASK32 = 0xFFFFFFFF
_INCREMENT = 0x6D2B79F5
_DIVISOR = 4294967296.0  # 2**32


def lerp(a: float, b: float, t: float) -> float:
    """Linear interpolation between a and b."""
    return a + (b - a) * t


class SeededRandom:
    """
    Reproducible float stream in [0, 1).

    State is held per instance, so two generators with the same seed never
    interfere with each other.
    """

    __slots__ = ("seed", "_state")

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._state = (self.seed + _INCREMENT) & _MASK32

    def next(self) -> float:
        """Advance the generator and return the next value in [0, 1)."""
        self._state = (self._state + _INCREMENT) & _MASK32
        t = self._state

        r = ((t ^ (t >> 15)) * (1 | t)) & _MASK32
        r ^= (r + (((r ^ (r >> 7)) * (61 | r)) & _MASK32)) & _MASK32
        r = (r ^ (r >> 14)) & _MASK32

        return r / _DIVISOR

    __call__ = next

    def __repr__(self) -> str:
        return f"SeededRandom(seed={self.seed})"
