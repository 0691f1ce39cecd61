"""Core types of the audio graph: processors, sources, triggers and sinks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

N_CHANNELS = 1
FRAME_LENGTH = 256 * N_CHANNELS

WAVE_HZ = 44100
WAVE_AMP = 1 << 15

TRIGGER_THRESHOLD = 0.5

_DIGITS = "0123456789"


def _copy(dst: list[float], src: list[float] | None) -> None:
    """Copy as many samples as both buffers hold from src into dst."""
    if src is None:
        return
    n = min(len(dst), len(src))
    dst[:n] = src[:n]


class Processor(ABC):
    """An audio source that fills a whole frame buffer on each call."""

    @abstractmethod
    def process(self, buf: list[float]) -> None:
        """Fill buf in place with the next frame of samples."""


class Ticker(ABC):
    """Something whose tick method is called once per audio frame."""

    @abstractmethod
    def tick(self) -> None:
        """Advance to the next frame."""


@dataclass(frozen=True)
class Value(Processor):
    """A processor that outputs a constant."""

    value: float = 0.0

    def __float__(self) -> float:
        return float(self.value)

    def process(self, buf: list[float]) -> None:
        buf[:] = [float(self.value)] * len(buf)


class Source:
    """An input that owns a frame buffer and pulls from a processor."""

    __slots__ = ("p", "buf")

    def __init__(self, p: Processor | None = None) -> None:
        self.p: Processor = p if p is not None else Value(0.0)
        self.buf: list[float] = [0.0] * FRAME_LENGTH

    def process(self) -> list[float]:
        """Pull one frame from the attached processor into the own buffer."""
        self.p.process(self.buf)
        return self.buf


class Trigger(Source):
    """A source that detects rising edges across the trigger threshold."""

    __slots__ = ("last",)

    def __init__(self, p: Processor | None = None) -> None:
        super().__init__(p)
        self.last = False

    def is_trigger(self, s: float) -> bool:
        """Return True when s crosses above the threshold from below."""
        high = s > TRIGGER_THRESHOLD
        trig = not self.last and high
        self.last = high
        return trig


class Sink:
    """A consumer of audio with named inputs.

    Ports are Source objects, or lists of them; a list named "v" is
    addressed as "v0", "v1" and so on.
    """

    def __init__(self, ports: dict[str, Source | list[Source]] | None = None) -> None:
        self._ports: dict[str, Source | list[Source]] | None = None
        if ports is None:
            return
        self._ports = {}
        for name, port in ports.items():
            if isinstance(port, Source):
                port.p = Value(0.0)
            elif isinstance(port, list) and all(isinstance(s, Source) for s in port):
                for src in port:
                    src.p = Value(0.0)
            else:
                raise TypeError(f"bad input type for {name!r}")
            self._ports[name] = port

    def input(self, name: str, p: Processor) -> None:
        """Attach processor p to the named input."""
        if self._ports is None:
            raise ValueError("no inputs registered")
        base = name.strip(_DIGITS)
        port = self._ports.get(base)
        if port is None:
            raise ValueError("bad input name: " + name)
        if isinstance(port, Source):
            port.p = p
            return
        suffix = name[len(base):] if name.startswith(base) else name
        try:
            index = int(suffix)
        except ValueError:
            index = 0
        if not 0 <= index < len(port):
            raise ValueError("bad input name: " + name)
        port[index].p = p

    def inputs(self) -> list[str]:
        """Return the sorted names of all inputs."""
        names: list[str] = []
        for name, port in (self._ports or {}).items():
            if isinstance(port, list):
                names.extend(f"{name}{i}" for i in range(len(port)))
            else:
                names.append(name)
        return sorted(names)