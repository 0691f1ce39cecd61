"""Signal processors: oscillators, arithmetic, envelopes, filters and more."""

from __future__ import annotations

import math
import random

from ..fast import exp2
from ..fast import sin as fast_sin
from .common import FRAME_LENGTH, WAVE_HZ, Processor, Sink, Source, Trigger

MAX_FILTER_BUFFER_LENGTH = 1024
N_STEP = 4


def sample_to_hz(s: float) -> float:
    """Convert a pitch sample (0.1 per octave, 0 == 440 Hz) to Hz."""
    return 440 * exp2(s * 10)


def filter_buffer_length(freq: float) -> float:
    """Return the averaging window length for a filter frequency sample."""
    s = WAVE_HZ / sample_to_hz(freq)
    if s >= MAX_FILTER_BUFFER_LENGTH:
        return float(MAX_FILTER_BUFFER_LENGTH)
    if s < 0:
        return 0.0
    return s


class Sin(Sink, Processor):
    """A sine oscillator with a pitch input and a sync trigger."""

    def __init__(self) -> None:
        self._pitch = Source()
        self._syn = Trigger()
        super().__init__({"pitch": self._pitch, "syn": self._syn})
        self._pos = 0.0

    def process(self, buf: list[float]) -> None:
        self._pitch.p.process(buf)
        t = self._syn.process()
        p = self._pos
        last = buf[0]
        hz = sample_to_hz(last)
        out = []
        for s, trig in zip(buf, t):
            if self._syn.is_trigger(trig):
                p = 0.0
            if s != last:
                hz, last = sample_to_hz(s), s
            out.append(fast_sin(p * 2 * math.pi))
            p += hz / WAVE_HZ
            if p > 100:
                p -= 100
        buf[:] = out
        self._pos = p


class Mul(Sink, Processor):
    """Multiplies input a by input b."""

    def __init__(self) -> None:
        self._a = Source()
        self._b = Source()
        super().__init__({"a": self._a, "b": self._b})

    def process(self, buf: list[float]) -> None:
        self._a.p.process(buf)
        buf[:] = [x * m for x, m in zip(buf, self._b.process())]


class Sum(Sink, Processor):
    """Adds input a and input b."""

    def __init__(self) -> None:
        self._a = Source()
        self._b = Source()
        super().__init__({"a": self._a, "b": self._b})

    def process(self, buf: list[float]) -> None:
        self._a.p.process(buf)
        buf[:] = [x + y for x, y in zip(buf, self._b.process())]


class MulSum(Sink, Processor):
    """Computes a * x + b."""

    def __init__(self) -> None:
        self._a = Source()
        self._b = Source()
        self._x = Source()
        super().__init__({"a": self._a, "b": self._b, "x": self._x})

    def process(self, buf: list[float]) -> None:
        self._a.p.process(buf)
        b, x = self._b.process(), self._x.process()
        buf[:] = [s * xv + bv for s, bv, xv in zip(buf, b, x)]


class Env(Sink, Processor):
    """An attack/decay envelope following a gate and fired by a trigger."""

    def __init__(self) -> None:
        self._gate = Source()
        self._trig = Trigger()
        self._att = Source()
        self._dec = Source()
        super().__init__(
            {"gate": self._gate, "trig": self._trig, "att": self._att, "dec": self._dec}
        )
        self._v = 0.0
        self._up = False

    def process(self, buf: list[float]) -> None:
        self._gate.p.process(buf)
        att, dec, t = self._att.process(), self._dec.process(), self._trig.process()
        v = self._v
        out = []
        for x, a, d, trig in zip(buf, att, dec, t):
            if self._trig.is_trigger(trig):
                self._up = True
            if not self._up and v > x:
                if d > 0:
                    v -= 1 / (d * WAVE_HZ * 10)
                    if v < x:
                        v = x
                else:
                    v = x
            if self._up or v < x:
                if a > 0:
                    v += 1 / (a * WAVE_HZ * 10)
                    if self._up:
                        if v > 1:
                            v = 1.0
                            self._up = False
                    elif v > x:
                        v = x
                elif self._up:
                    v = 1.0
                    self._up = False
                elif v < x:
                    v = x
            out.append(v)
        buf[:] = out
        self._v = v


class Clip(Sink, Processor):
    """Clamps its input to [-1, 1]."""

    def __init__(self) -> None:
        self._in = Source()
        super().__init__({"in": self._in})

    def process(self, buf: list[float]) -> None:
        self._in.p.process(buf)
        buf[:] = [1.0 if v > 1 else -1.0 if v < -1 else v for v in buf]


class Rand(Sink, Processor):
    """Holds a random value between min and max, redrawn on each trigger."""

    def __init__(self) -> None:
        self._min = Source()
        self._max = Source()
        self._trig = Trigger()
        super().__init__({"min": self._min, "max": self._max, "trig": self._trig})
        self._last = 0.0

    def process(self, buf: list[float]) -> None:
        self._min.p.process(buf)
        hi, t = self._max.process(), self._trig.process()
        v = self._last
        out = []
        for lo, h, trig in zip(buf, hi, t):
            if self._trig.is_trigger(trig):
                v = lo + random.random() * (h - lo)
            out.append(v)
        buf[:] = out
        self._last = v


class Delay(Sink, Processor):
    """Delays its input by up to one second."""

    def __init__(self) -> None:
        self._in = Source()
        self._len = Source()
        super().__init__({"in": self._in, "len": self._len})
        self._p = 0
        self._buf = [0.0] * WAVE_HZ

    def process(self, buf: list[float]) -> None:
        self._in.p.process(buf)
        lengths = self._len.process()
        p = self._p
        for i, length in enumerate(lengths):
            limit = int(length * WAVE_HZ)
            if limit < FRAME_LENGTH:
                continue
            limit = min(limit, WAVE_HZ)
            if p >= limit:
                p = 0
            buf[i], self._buf[p] = self._buf[p], buf[i]
            p += 1
        self._p = p


class Quant(Sink, Processor):
    """Quantizes its input to steps of 1/120 (semitones)."""

    def __init__(self) -> None:
        self._in = Source()
        super().__init__({"in": self._in})

    def process(self, buf: list[float]) -> None:
        self._in.p.process(buf)
        buf[:] = [int(s * 120) / 120 for s in buf]


class Skip(Sink, Processor):
    """Passes through every n-th trigger as a one-sample pulse."""

    def __init__(self) -> None:
        self._num = Source()
        self._trig = Trigger()
        super().__init__({"num": self._num, "trig": self._trig})
        self._n = 0

    def process(self, buf: list[float]) -> None:
        self._num.p.process(buf)
        t = self._trig.process()
        out = []
        for num, trig in zip(buf, t):
            if self._trig.is_trigger(trig):
                m = int(num * 10)
                if m <= 0 or self._n % m == 0:
                    self._n = 1
                    out.append(1.0)
                    continue
                self._n += 1
            out.append(0.0)
        buf[:] = out


class Step(Sink, Processor):
    """A four-step sequencer advanced by trig and reset by rst."""

    def __init__(self) -> None:
        self._trig = Trigger()
        self._rst = Trigger()
        self._in = [Source() for _ in range(N_STEP)]
        super().__init__({"trig": self._trig, "rst": self._rst, "v": self._in})
        self._n = 0

    def process(self, buf: list[float]) -> None:
        t, r = self._trig.process(), self._rst.process()
        steps = [src.process() for src in self._in]
        out = []
        for i, (trig, rst) in enumerate(zip(t, r)):
            if self._trig.is_trigger(trig):
                self._n = (self._n + 1) % N_STEP
            if self._rst.is_trigger(rst):
                self._n = 0
            out.append(steps[self._n][i])
        buf[:] = out


class Noise(Processor):
    """White noise in [-1, 1)."""

    def process(self, buf: list[float]) -> None:
        buf[:] = [random.random() * 2 - 1 for _ in buf]


class Filter(Sink, Processor):
    """A rolling-average low-pass filter whose window follows freq."""

    def __init__(self) -> None:
        self._in = Source()
        self._freq = Source()
        super().__init__({"in": self._in, "freq": self._freq})
        self._buf = [0.0] * MAX_FILTER_BUFFER_LENGTH  # circular buffer
        self._bufp = 0
        self._avg = 0.0

    def process(self, buf: list[float]) -> None:
        self._in.p.process(buf)
        freq = self._freq.process()
        avg, ring, bufp = self._avg, self._buf, self._bufp
        last = freq[0]
        n = filter_buffer_length(last)
        out = []
        for s, f in zip(buf, freq):
            if f != last:
                n, last = filter_buffer_length(f), f
            cur = s / n
            avg += cur - ring[bufp]
            ring[bufp] = cur
            bufp = (bufp + 1) % int(n)
            out.append(avg)
        buf[:] = out
        self._avg, self._bufp = avg, bufp