"""Wavetable oscillators with band-limited square, triangle and saw tables."""

from __future__ import annotations

import math
from collections.abc import Callable, Sequence

from .common import WAVE_HZ, Processor, Sink, Source, Trigger
from .proc import sample_to_hz

_N_SAMPLES = 1024 * 16
_ODD_HARMONICS = (1, 3, 5, 7, 9, 11)
_ALL_HARMONICS = tuple(range(1, 12))


class TableOsc(Sink, Processor):
    """An oscillator that plays back one cycle stored in a table."""

    def __init__(self, table: Sequence[float]) -> None:
        self._table = table
        self._pitch = Source()
        self._syn = Trigger()
        super().__init__({"pitch": self._pitch, "syn": self._syn})
        self._pos = 0.0

    def process(self, buf: list[float]) -> None:
        table = self._table
        size = len(table)
        p = self._pos
        self._pitch.p.process(buf)
        t = self._syn.process()
        last = buf[0]
        hz = sample_to_hz(last)
        out = []
        for s, trig in zip(buf, t):
            if self._syn.is_trigger(trig):
                p = 0.0
            if s != last:
                hz, last = sample_to_hz(s), s
            out.append(table[int(p)])
            p += hz / WAVE_HZ * size
            while p > size - 1:
                p -= size
        buf[:] = out
        self._pos = p


def new_harmonic_table(
    samples: int, harmonics: Sequence[int], amp: Callable[[int], float]
) -> list[float]:
    """Sum sine harmonics over one cycle and normalize so the peak is 1."""
    table = [
        sum(amp(h) * math.sin(2 * math.pi * h * (i / samples)) for h in harmonics)
        for i in range(samples)
    ]
    peak = max([0.0, *table])
    return [v / peak for v in table]


BAND_LIMITED_SQUARE_TABLE = new_harmonic_table(
    _N_SAMPLES, _ODD_HARMONICS, lambda k: 1 / k
)
BAND_LIMITED_TRIANGLE_TABLE = new_harmonic_table(
    _N_SAMPLES, _ODD_HARMONICS, lambda k: 1 / k / k
)
BAND_LIMITED_SAW_TABLE = new_harmonic_table(
    _N_SAMPLES, _ALL_HARMONICS, lambda k: 2.0 / math.pi * (-1.0) ** k / k
)


def new_band_limited_square() -> TableOsc:
    return TableOsc(BAND_LIMITED_SQUARE_TABLE)


def new_band_limited_triangle() -> TableOsc:
    return TableOsc(BAND_LIMITED_TRIANGLE_TABLE)


def new_band_limited_saw() -> TableOsc:
    return TableOsc(BAND_LIMITED_SAW_TABLE)