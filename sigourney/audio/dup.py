"""Splitting one processor into several audio streams."""

from __future__ import annotations

from .common import FRAME_LENGTH, Processor, Ticker, _copy


class Dup(Ticker):
    """Splits a processor into multiple outputs that share one frame per tick."""

    def __init__(self, src: Processor) -> None:
        self._src = src
        self._outs: list[Output] = []
        self._buf: list[float] | None = None
        self._done = False

    def tick(self) -> None:
        self._done = False

    def set_source(self, p: Processor) -> None:
        """Change the source processor."""
        self._src = p

    def output(self) -> Output:
        """Create a new output; close it when it is no longer in use."""
        out = Output(self)
        self._outs.append(out)
        if len(self._outs) > 1 and self._buf is None:
            self._buf = [0.0] * FRAME_LENGTH
        return out


class Output(Processor):
    """A processor endpoint provided by a Dup."""

    def __init__(self, dup: Dup) -> None:
        self._dup = dup

    def process(self, buf: list[float]) -> None:
        dup = self._dup
        if not dup._done:
            dup._done = True
            dup._src.process(buf)
            if len(dup._outs) > 1:
                _copy(dup._buf, buf)
        else:
            _copy(buf, dup._buf)

    def close(self) -> None:
        """Detach this output from its Dup."""
        outs = self._dup._outs
        for i, other in enumerate(outs):
            if other is self:
                del outs[i]
                break