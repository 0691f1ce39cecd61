import json
import os

import pytest

from sigourney.audio.common import FRAME_LENGTH
from sigourney.audio.engine import AudioError
from sigourney.ui import UI, Handler, UIError, kind_inputs


class RecordingHandler(Handler):
    def __init__(self):
        self.hellos = []
        self.graphs = []

    def hello(self, kind_inputs):
        self.hellos.append(kind_inputs)

    def set_graph(self, graph):
        self.graphs.append(graph)


@pytest.fixture
def handler():
    return RecordingHandler()


@pytest.fixture
def ui(handler):
    return UI(handler)


def test_hello_sent_with_kind_inputs():
    handler = RecordingHandler()
    UI(handler)
    assert len(handler.hellos) == 1
    inputs = handler.hellos[0]
    assert inputs["engine"] == ["in"]
    assert inputs["sin"] == ["pitch", "syn"]
    assert inputs["sequencer"] == ["rst", "trig", "v0", "v1", "v2", "v3"]
    assert inputs["value"] == []
    assert inputs["noise"] == []


def test_kind_inputs_covers_all_kinds():
    inputs = kind_inputs()
    assert set(inputs) == {
        "clip", "delay", "engine", "env", "mul", "noise", "quant", "rand", "saw",
        "sequencer", "square", "sin", "skip", "sum", "triangle", "value", "gate", "note",
    }
    assert inputs["env"] == ["att", "dec", "gate", "trig"]
    assert all(v == sorted(v) for v in inputs.values())


def test_engine_object_exists(ui):
    assert ui.objects["engine"].kind == "engine"
    assert ui.render(1) == [0.0] * FRAME_LENGTH


def test_connect_value_to_engine(ui):
    ui.new_object("v", "value", 0.25)
    ui.connect("v", "engine", "in")
    assert ui.render(2) == [0.25] * (2 * FRAME_LENGTH)
    assert ui.objects["engine"].input == {"in": "v"}


def test_connect_through_clip(ui):
    ui.new_object("v", "value", 2.0)
    ui.new_object("c", "clip", 0.0)
    ui.connect("v", "c", "in")
    ui.connect("c", "engine", "in")
    assert ui.render(1) == [1.0] * FRAME_LENGTH


def test_connect_unknown_objects(ui):
    ui.new_object("v", "value", 0.1)
    with pytest.raises(UIError, match="unknown From: nope"):
        ui.connect("nope", "engine", "in")
    with pytest.raises(UIError, match="unknown To: nope"):
        ui.connect("v", "nope", "in")


def test_connect_bad_input_name(ui):
    ui.new_object("v", "value", 0.1)
    with pytest.raises(UIError):
        ui.connect("v", "engine", "bogus")
    assert ui.objects["engine"].input == {}


def test_connect_from_engine_fails(ui):
    ui.new_object("c", "clip", 0.0)
    with pytest.raises(UIError):
        ui.connect("engine", "c", "in")


def test_disconnect(ui):
    ui.new_object("v", "value", 0.5)
    ui.connect("v", "engine", "in")
    ui.disconnect("v", "engine", "in")
    assert ui.render(1) == [0.0] * FRAME_LENGTH
    assert ui.objects["engine"].input == {}


def test_disconnect_not_connected(ui):
    ui.new_object("v", "value", 0.5)
    with pytest.raises(UIError):
        ui.disconnect("v", "engine", "in")


def test_set_changes_output(ui):
    ui.new_object("v", "value", 0.5)
    ui.connect("v", "engine", "in")
    ui.set("v", -0.5)
    assert ui.objects["v"].value == -0.5
    assert ui.render(1) == [-0.5] * FRAME_LENGTH


def test_set_unknown(ui):
    with pytest.raises(UIError, match="unknown object: x"):
        ui.set("x", 1.0)


def test_destroy_removes_connections(ui):
    ui.new_object("v", "value", 0.5)
    ui.connect("v", "engine", "in")
    ui.destroy("v")
    assert "v" not in ui.objects
    assert ui.objects["engine"].input == {}
    assert ui.render(1) == [0.0] * FRAME_LENGTH


def test_destroy_unknown(ui):
    with pytest.raises(UIError, match="bad Name: x"):
        ui.destroy("x")


def test_set_display_merges(ui):
    ui.new_object("v", "value", 0.5)
    ui.set_display("v", {"x": 10})
    ui.set_display("v", {"y": 20})
    assert ui.objects["v"].display == {"x": 10, "y": 20}
    with pytest.raises(UIError):
        ui.set_display("nope", {"x": 1})


def test_new_object_bad_kind(ui):
    with pytest.raises(UIError, match="bad kind: widget"):
        ui.new_object("w", "widget", 0.0)


def test_save_writes_json(ui, tmp_path):
    ui.new_object("v", "value", 0.25)
    ui.connect("v", "engine", "in")
    path = tmp_path / "patch.json"
    ui.save(path)
    data = json.loads(path.read_text())
    assert data["v"] == {
        "Name": "v", "Kind": "value", "Value": 0.25, "Input": {}, "Display": None,
    }
    assert data["engine"]["Input"] == {"in": "v"}


def test_save_load_round_trip(ui, tmp_path):
    ui.new_object("v", "value", 2.0)
    ui.new_object("c", "clip", 0.0)
    ui.connect("v", "c", "in")
    ui.connect("c", "engine", "in")
    ui.set_display("c", {"x": 3})
    path = tmp_path / "patch.json"
    ui.save(path)

    other_handler = RecordingHandler()
    other = UI(other_handler)
    other.new_object("stale", "sin", 0.0)
    other.load(path)
    assert set(other.objects) == {"engine", "v", "c"}
    assert other.objects["c"].input == {"in": "v"}
    assert other.objects["c"].display == {"x": 3}
    assert other.render(1) == ui.render(1)
    assert len(other_handler.graphs) == 1
    assert {o.name for o in other_handler.graphs[0]} == {"engine", "v", "c"}


def test_load_missing_file(ui, tmp_path):
    with pytest.raises(UIError, match="^load:"):
        ui.load(tmp_path / "missing.json")


def test_load_bad_kind(ui, tmp_path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"w": {"Name": "w", "Kind": "widget"}}))
    with pytest.raises(UIError):
        ui.load(path)


def test_start_without_output(ui):
    with pytest.raises(AudioError):
        ui.start()


def test_start_stop_with_output(handler):
    with open(os.devnull, "wb") as out:
        u = UI(handler, out)
        u.start()
        u.stop()
        assert u.engine.render(1) == [0.0] * FRAME_LENGTH