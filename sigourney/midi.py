"""MIDI note and gate processors fed by a MIDI input port."""

from __future__ import annotations

import functools
import logging
import threading

import mido

from .audio.common import Processor

log = logging.getLogger(__name__)

NOTE_ON = 144
NOTE_OFF = 128
A4_NOTE = 69


class NoteTracker:
    """Follows held MIDI notes with last-note priority."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._held: list[int] = []
        self.note = 0
        self.gate = 0

    def handle(self, status: int, data1: int) -> None:
        """Apply one MIDI event given by its status byte and first data byte."""
        with self._lock:
            if status == NOTE_ON:
                if data1 not in self._held:
                    self._held.append(data1)
                self.note = data1
                self.gate = 1
            elif status == NOTE_OFF:
                self._held = [n for n in self._held if n != data1]
                if self._held:
                    self.note = self._held[-1]
                else:
                    self.gate = 0


TRACKER = NoteTracker()


def _midi_loop(port, tracker: NoteTracker) -> None:
    for msg in port:
        data = msg.bytes()
        if len(data) >= 2:
            tracker.handle(data[0], data[1])


def init_midi(device: str | None = None) -> threading.Thread | None:
    """Open a MIDI input (the default one when device is None) and follow it.

    Returns the listening thread, or None if no input could be opened.
    """
    try:
        port = mido.open_input(device)
    except Exception as exc:  # missing backend or unavailable device
        log.warning("could not initialize MIDI input device: %s", exc)
        return None
    thread = threading.Thread(
        target=_midi_loop, args=(port, TRACKER), name="sigourney-midi", daemon=True
    )
    thread.start()
    return thread


@functools.lru_cache(maxsize=None)
def _start_default_input() -> threading.Thread | None:
    return init_midi(None)


class Note(Processor):
    """Outputs the current note as pitch: 0 is A4, 0.1 per octave."""

    def __init__(self, tracker: NoteTracker | None = None) -> None:
        if tracker is None:
            _start_default_input()
            tracker = TRACKER
        self._tracker = tracker

    def process(self, buf: list[float]) -> None:
        p = (self._tracker.note - A4_NOTE) / 120
        buf[:] = [p] * len(buf)


class Gate(Processor):
    """Outputs 1 while any note is held and 0 otherwise."""

    def __init__(self, tracker: NoteTracker | None = None) -> None:
        if tracker is None:
            _start_default_input()
            tracker = TRACKER
        self._tracker = tracker

    def process(self, buf: list[float]) -> None:
        g = float(self._tracker.gate)
        buf[:] = [g] * len(buf)