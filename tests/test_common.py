import pytest

from sigourney.audio.common import (
    FRAME_LENGTH,
    TRIGGER_THRESHOLD,
    Processor,
    Sink,
    Source,
    Trigger,
    Value,
)


class Ramp(Processor):
    def __init__(self):
        self.calls = 0

    def process(self, buf):
        self.calls += 1
        buf[:] = [float(i) for i in range(len(buf))]


def test_value_fills_buffer():
    buf = [0.0] * 8
    Value(0.25).process(buf)
    assert buf == [0.25] * 8


def test_value_converts_to_float():
    assert float(Value(-0.6)) == -0.6


def test_source_defaults_to_silence():
    src = Source()
    out = src.process()
    assert len(out) == FRAME_LENGTH
    assert set(out) == {0.0}


def test_source_returns_own_buffer_filled_by_processor():
    ramp = Ramp()
    src = Source(ramp)
    out = src.process()
    assert out is src.buf
    assert out[:3] == [0.0, 1.0, 2.0]
    assert ramp.calls == 1


def test_trigger_fires_only_on_rising_edge():
    t = Trigger()
    seq = [0.0, 1.0, 1.0, 0.0, 0.9, TRIGGER_THRESHOLD, 1.0]
    fired = [t.is_trigger(s) for s in seq]
    assert fired == [False, True, False, False, True, False, True]


def test_trigger_threshold_is_exclusive():
    t = Trigger()
    assert t.is_trigger(TRIGGER_THRESHOLD) is False


def test_sink_inputs_are_sorted_and_expanded():
    sink = Sink({"v": [Source(), Source()], "a": Source()})
    assert sink.inputs() == ["a", "v0", "v1"]


def test_sink_input_attaches_to_named_source():
    a = Source()
    sink = Sink({"a": a})
    v = Value(0.5)
    sink.input("a", v)
    assert a.p is v


def test_sink_input_indexes_list_ports():
    ports = [Source(), Source(), Source()]
    sink = Sink({"v": ports})
    v = Value(0.7)
    sink.input("v2", v)
    assert ports[2].p is v
    assert ports[0].p == Value(0.0)


def test_sink_input_without_index_uses_first_port():
    ports = [Source(), Source()]
    sink = Sink({"v": ports})
    v = Value(0.3)
    sink.input("v", v)
    assert ports[0].p is v


def test_sink_registration_resets_processor():
    src = Source(Ramp())
    Sink({"a": src})
    assert src.p == Value(0.0)


def test_sink_rejects_unknown_name():
    sink = Sink({"a": Source()})
    with pytest.raises(ValueError, match="bad input name"):
        sink.input("b", Value(1.0))


def test_sink_rejects_out_of_range_index():
    sink = Sink({"v": [Source(), Source()]})
    with pytest.raises(ValueError):
        sink.input("v5", Value(1.0))


def test_sink_without_inputs_raises():
    sink = Sink()
    with pytest.raises(ValueError, match="no inputs registered"):
        sink.input("a", Value(1.0))
    assert sink.inputs() == []


def test_sink_rejects_bad_port_type():
    with pytest.raises(TypeError):
        Sink({"a": 3})