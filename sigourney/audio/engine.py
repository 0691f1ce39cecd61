"""The root of a processor graph and its audio output loop."""

from __future__ import annotations

import math
import threading
from array import array
from typing import BinaryIO

from .common import WAVE_AMP, Sink, Source, Ticker

_INT16_MIN, _INT16_MAX = -(1 << 15), (1 << 15) - 1


class AudioError(Exception):
    """Raised when audio output cannot be started or fails."""


class Engine(Sink):
    """Root of a processor graph with a single input named "in".

    Audio is written as signed 16-bit native-endian mono PCM at 44100 Hz
    to the binary stream given as output. Hold ``lock`` while mutating
    the graph.
    """

    def __init__(self, output: BinaryIO | None = None) -> None:
        self._in = Source()
        super().__init__({"in": self._in})
        self.lock = threading.Lock()
        self._tickers: list[Ticker] = []
        self._max = 1.0  # limiter peak
        self._output = output
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._error: BaseException | None = None

    def add_ticker(self, t: Ticker) -> None:
        self._tickers.append(t)

    def remove_ticker(self, t: Ticker) -> None:
        for i, other in enumerate(self._tickers):
            if other is t:
                del self._tickers[i]
                break

    def process(self) -> list[float]:
        """Produce one frame from the input and tick all tickers."""
        with self.lock:
            buf = self._in.process()
            for t in self._tickers:
                t.tick()
        return buf

    def render(self, frames: int) -> list[float]:
        """Return the samples of the given number of frames."""
        out: list[float] = []
        for _ in range(frames):
            out.extend(self.process())
        return out

    def process_audio(self) -> array:
        """Produce one frame as limited 16-bit samples."""
        out = array("h")
        for v in self.process():
            self._max = max(self._max, abs(v))
            s = v * (1 / self._max)
            if math.isnan(s):
                out.append(0)
                continue
            out.append(min(_INT16_MAX, max(_INT16_MIN, int(s * WAVE_AMP))))
        return out

    def start(self) -> None:
        """Begin streaming audio to the output in a background thread."""
        if self._output is None:
            raise AudioError("audio disabled: no audio output configured")
        if self._thread is not None:
            raise AudioError("engine already started")
        self._stopping.clear()
        self._error = None
        self._thread = threading.Thread(
            target=self._run, name="sigourney-engine", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        """Stop streaming; raise AudioError if the output failed."""
        thread = self._thread
        if thread is None:
            return
        self._stopping.set()
        thread.join()
        self._thread = None
        error, self._error = self._error, None
        if error is not None:
            raise AudioError(f"audio output failed: {error}") from error

    def _run(self) -> None:
        try:
            while not self._stopping.is_set():
                self._output.write(self.process_audio().tobytes())
        except (OSError, ValueError) as exc:
            self._error = exc