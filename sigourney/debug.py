"""Debugging aids: recording, offline processing and waveform images."""

from __future__ import annotations

import os
import subprocess
import tempfile

from PIL import Image

from .audio.common import FRAME_LENGTH, Processor

IMAGE_HEIGHT = 400
IMAGE_V_SCALE = 150
_COLOR = (0, 0, 0, 255)


class Recorder(Processor):
    """Passes audio through while keeping every sample it sees."""

    def __init__(self, p: Processor) -> None:
        self.samples: list[float] = []
        self._p = p

    def process(self, buf: list[float]) -> None:
        self._p.process(buf)
        self.samples.extend(buf)


class Tracer:
    """Keeps labelled recorders for inspecting points in a graph."""

    def __init__(self) -> None:
        self.paths: dict[str, Recorder] = {}

    def record(self, label: str, p: Processor) -> Recorder:
        """Wrap p in a Recorder stored under label and return it."""
        r = Recorder(p)
        self.paths[label] = r
        return r


def process(p: Processor, frames: int) -> list[float]:
    """Run p for the given number of frames and return all samples."""
    out: list[float] = []
    for _ in range(frames):
        buf = [0.0] * FRAME_LENGTH
        p.process(buf)
        out.extend(buf)
    return out


def render(samples: list[float]) -> Image.Image:
    """Draw samples as vertical lines from the centre into an RGBA image."""
    img = Image.new("RGBA", (len(samples), IMAGE_HEIGHT), (0, 0, 0, 0))
    pixels = img.load()
    for x, s in enumerate(samples):
        y = IMAGE_HEIGHT // 2
        dy = y - int(s * IMAGE_V_SCALE)
        while y != dy and 0 <= y < IMAGE_HEIGHT:
            pixels[x, y] = _COLOR
            y += 1 if y < dy else -1
    return img


def view(image: Image.Image) -> str:
    """Save image as a PNG in a new temporary directory, open it and return its path."""
    directory = tempfile.mkdtemp(prefix="sigourney-debug")
    path = os.path.join(directory, "image.png")
    image.save(path, format="PNG")
    subprocess.run(["open", path], check=True)
    return path