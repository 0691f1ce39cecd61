"""Patch editing: named objects wired together into an audio graph."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, BinaryIO, NamedTuple

from .audio.common import Processor, Sink, Value
from .audio.dup import Dup, Output
from .audio.engine import Engine
from .audio.proc import Clip, Delay, Env, Mul, Noise, Quant, Rand, Sin, Skip, Step, Sum
from .audio.table import (
    new_band_limited_saw,
    new_band_limited_square,
    new_band_limited_triangle,
)
from .midi import Gate, Note

KINDS = (
    "clip",
    "delay",
    "engine",
    "env",
    "mul",
    "noise",
    "quant",
    "rand",
    "saw",
    "sequencer",
    "square",
    "sin",
    "skip",
    "square",
    "sum",
    "triangle",
    "value",
    "gate",
    "note",
)

_FACTORIES: dict[str, Callable[[], object]] = {
    "clip": Clip,
    "delay": Delay,
    "env": Env,
    "mul": Mul,
    "noise": Noise,
    "quant": Quant,
    "rand": Rand,
    "saw": new_band_limited_saw,
    "sin": Sin,
    "skip": Skip,
    "sequencer": Step,
    "square": new_band_limited_square,
    "sum": Sum,
    "triangle": new_band_limited_triangle,
    "gate": Gate,
    "note": Note,
}


class UIError(Exception):
    """Raised when a patch operation cannot be carried out."""


class Handler(ABC):
    """Receives notifications from a UI."""

    @abstractmethod
    def hello(self, kind_inputs: dict[str, list[str]]) -> None:
        """Called once with the input names of every object kind."""

    @abstractmethod
    def set_graph(self, graph: list[Object]) -> None:
        """Called with the objects of a freshly loaded patch."""


def _new_processor(kind: str, value: float, output: BinaryIO | None) -> object:
    if kind == "engine":
        return Engine(output)
    if kind == "value":
        return Value(float(value))
    factory = _FACTORIES.get(kind)
    if factory is None:
        raise UIError("bad kind: " + kind)
    return factory()


class _Dest(NamedTuple):
    name: str
    input: str


@dataclass(eq=False)
class Object:
    """A named node of the patch."""

    name: str
    kind: str
    value: float = 0.0
    input: dict[str, str] = field(default_factory=dict)
    display: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self._proc: object = None
        self._dup: Dup | None = None
        self._output: dict[_Dest, Output] = {}

    def _build(self, output: BinaryIO | None) -> None:
        proc = _new_processor(self.kind, self.value, output)
        self._proc = proc
        self._dup = Dup(proc) if isinstance(proc, Processor) else None
        self._output = {}


def _object_to_json(o: Object) -> dict[str, Any]:
    return {
        "Name": o.name,
        "Kind": o.kind,
        "Value": o.value,
        "Input": dict(sorted(o.input.items())),
        "Display": o.display,
    }


def _object_from_json(data: Any) -> Object:
    if not isinstance(data, dict):
        raise ValueError("object is not a JSON object")
    fields = {str(k).lower(): v for k, v in data.items()}
    name = fields.get("name") or ""
    kind = fields.get("kind") or ""
    value = fields.get("value") or 0.0
    inputs = fields.get("input") or {}
    display = fields.get("display")
    if not isinstance(name, str) or not isinstance(kind, str):
        raise ValueError("Name and Kind must be strings")
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("Value must be a number")
    if not isinstance(inputs, dict) or not all(
        isinstance(v, str) for v in inputs.values()
    ):
        raise ValueError("Input must map names to strings")
    if display is not None and not isinstance(display, dict):
        raise ValueError("Display must be a JSON object")
    return Object(name, kind, float(value), dict(inputs), display)


def kind_inputs() -> dict[str, list[str]]:
    """Return the sorted input names of every object kind."""
    result: dict[str, list[str]] = {}
    for kind in KINDS:
        proc = _new_processor(kind, 0.0, None)
        result[kind] = proc.inputs() if isinstance(proc, Sink) else []
    return result


class UI:
    """A patch of named objects driving an audio engine."""

    def __init__(self, handler: Handler, output: BinaryIO | None = None) -> None:
        self._handler = handler
        self._output = output
        self.objects: dict[str, Object] = {}
        self.new_object("engine", "engine", 0.0)
        self.engine: Engine = self.objects["engine"]._proc
        handler.hello(kind_inputs())

    def start(self) -> None:
        self.engine.start()

    def stop(self) -> None:
        self.engine.stop()

    def render(self, frames: int) -> list[float]:
        return self.engine.render(frames)

    def _lookup(self, name: str, role: str) -> Object:
        obj = self.objects.get(name)
        if obj is None:
            raise UIError(f"unknown {role}: {name}")
        return obj

    def destroy(self, name: str) -> None:
        """Remove an object together with all its connections."""
        obj = self.objects.get(name)
        if obj is None:
            raise UIError("bad Name: " + name)
        if obj._dup is not None:
            with self.engine.lock:
                self.engine.remove_ticker(obj._dup)
        for dest in list(obj._output):
            self.disconnect(name, dest.name, dest.input)
        for input_, from_ in list(obj.input.items()):
            self.disconnect(from_, name, input_)
        del self.objects[name]

    def save(self, path: str | Path) -> None:
        """Write the patch as indented JSON."""
        data = {name: _object_to_json(o) for name, o in sorted(self.objects.items())}
        try:
            Path(path).write_text(json.dumps(data, indent=2), encoding="utf-8")
        except OSError as exc:
            raise UIError(f"save: {exc}") from exc

    def load(self, path: str | Path) -> None:
        """Replace the patch with the one stored at path."""
        for name in [n for n in self.objects if n != "engine"]:
            if name in self.objects:
                self.destroy(name)
        try:
            with open(path, encoding="utf-8") as f:
                raw = json.load(f)
        except (OSError, ValueError) as exc:
            raise UIError(f"load: {exc}") from exc
        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise UIError("load: patch is not a JSON object")
        try:
            objs = {str(k): _object_from_json(v) for k, v in raw.items()}
        except ValueError as exc:
            raise UIError(f"load: {exc}") from exc
        for o in objs.values():
            if o.kind != "engine":
                self.new_object(o.name, o.kind, o.value)
            target = self.objects.get(o.name)
            if target is None:
                raise UIError(f"load: unknown object: {o.name}")
            target.display = o.display
        for to, o in objs.items():
            for input_, from_ in o.input.items():
                self.connect(from_, to, input_)
        self._handler.set_graph(list(objs.values()))

    def disconnect(self, from_: str, to: str, input_: str) -> None:
        """Remove the connection from one object to an input of another."""
        f = self._lookup(from_, "From")
        t = self._lookup(to, "To")
        dest = _Dest(to, input_)
        out = f._output.get(dest)
        if out is None:
            raise UIError(f"{from_} is not connected to {to} {input_}")
        if not isinstance(t._proc, Sink):
            raise UIError(f"object {to} has no inputs")
        with self.engine.lock:
            out.close()
            try:
                t._proc.input(input_, Value(0.0))
            except ValueError as exc:
                raise UIError(str(exc)) from exc
        del f._output[dest]
        t.input.pop(input_, None)

    def connect(self, from_: str, to: str, input_: str) -> None:
        """Connect the output of one object to a named input of another."""
        f = self._lookup(from_, "From")
        t = self._lookup(to, "To")
        if f._dup is None:
            raise UIError(f"object {from_} has no output")
        if not isinstance(t._proc, Sink):
            raise UIError(f"object {to} has no inputs")
        with self.engine.lock:
            out = f._dup.output()
            try:
                t._proc.input(input_, out)
            except ValueError as exc:
                out.close()
                raise UIError(str(exc)) from exc
        f._output[_Dest(to, input_)] = out
        t.input[input_] = from_

    def set(self, name: str, value: float) -> None:
        """Make the named object output a constant value."""
        obj = self.objects.get(name)
        if obj is None:
            raise UIError("unknown object: " + name)
        if obj._dup is None:
            raise UIError(f"object {name} has no output")
        obj.value = value
        const = Value(float(value))
        obj._proc = const
        with self.engine.lock:
            obj._dup.set_source(const)

    def set_display(self, name: str, display: dict[str, Any] | None) -> None:
        """Merge display properties into the named object."""
        obj = self.objects.get(name)
        if obj is None:
            raise UIError("unknown object: " + name)
        for key, val in (display or {}).items():
            if obj.display is None:
                obj.display = {}
            obj.display[key] = val

    def new_object(self, name: str, kind: str, value: float) -> None:
        """Create an object of the given kind under name."""
        obj = Object(name, kind, value)
        obj._build(self._output)
        if obj._dup is not None:
            with self.engine.lock:
                self.engine.add_ticker(obj._dup)
        self.objects[name] = obj