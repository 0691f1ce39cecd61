# sigourney

A modular synthesizer. Sound is produced by a graph of small signal
processors — oscillators, envelopes, mixers, filters, delays, sequencers —
wired together and pulled frame by frame by an engine. Patches are edited
over a websocket with JSON messages and can be saved to and loaded from
disk.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Running the synthesizer

```
sigourney
```

This starts an HTTP server (by default on `localhost:8080`) with the
websocket endpoint at `/socket`, serves files from the directory given with
`--static` (default `static`) at every other path, tries to open the URL in
a web browser, and waits until you press enter.

Options:

- `--listen HOST:PORT` — address to listen on.
- `--static DIR` — directory of editor files to serve.
- `--no-browser` — do not try to open a browser; the URL is printed instead.
- `--demo` — play a short built-in patch instead of serving: a plain sine
  for one second, then the demo patch until enter is pressed.

Audio is written to standard output as raw signed 16-bit native-endian mono
PCM at 44100 Hz; prompts and notices go to standard error. Pipe standard
output into a program that plays raw PCM, for example:

```
sigourney --demo | <your raw PCM player>
```

## Using the audio graph from Python

Every processor fills a frame of samples (a list of 256 floats) in place
when its `process` method is called. Processors with inputs are connected
with `input(name, processor)`, and `inputs()` lists the names they accept.

```python
from sigourney.audio.common import Value
from sigourney.audio.proc import Sin, Mul
from sigourney.audio.engine import Engine

osc = Sin()
osc.input("pitch", Value(-0.1))   # 0.1 per octave, 0 is 440 Hz

quiet = Mul()
quiet.input("a", osc)
quiet.input("b", Value(0.5))

engine = Engine()
engine.input("in", quiet)
samples = engine.render(10)       # ten frames, rendered offline
```

`Engine(output)` takes a binary stream; `start()` then writes limited
16-bit frames to it from a background thread until `stop()`. Without an
output, `start()` raises `AudioError`.

The processors in `sigourney.audio.proc` are `Sin`, `Mul`, `Sum`, `MulSum`,
`Env`, `Clip`, `Rand`, `Delay`, `Quant`, `Skip`, `Step` (a four-step
sequencer with inputs `v0`–`v3`), `Noise` and `Filter`.

A processor output can feed several inputs at once through
`sigourney.audio.dup.Dup`, whose `output()` hands out one endpoint per
connection; call `tick()` once per frame.

Band-limited square, triangle and saw oscillators come from
`sigourney.audio.table`:

```python
from sigourney.audio.table import new_band_limited_saw

saw = new_band_limited_saw()
saw.input("pitch", Value(-0.3))
```

## Patches

`sigourney.ui.UI` holds named objects of the kinds listed in
`sigourney.ui.KINDS` and wires them into its engine with `new_object`,
`connect`, `disconnect`, `set`, `set_display` and `destroy`. `save(path)`
and `load(path)` store the patch as JSON.

`sigourney.session.Session` drives a `UI` from messages
(`parse_message`, `Message`) with the actions `new`, `connect`,
`disconnect`, `set`, `destroy`, `load`, `save` and `setDisplay`, and queues
`hello`, `setGraph` and `message` replies. `load` and `save` take a name
made of letters, digits, `.`, `_` and `-`, and use the file `patch/<name>`
relative to the working directory.

## Looking at a signal

`sigourney.debug` draws a waveform to an image:

```python
from sigourney.debug import process, render, view

view(render(process(saw, 5)))
```

`view` saves a PNG in a temporary directory and opens it with the `open`
command, which is available on macOS.

## MIDI

The `note` and `gate` objects follow the notes played on a MIDI input,
opened through `mido` on first use. `sigourney.midi.init_midi(device)`
opens a named input instead. If no MIDI backend or device is available, a
warning is logged and the note and gate stay at their initial values.

## What is not included

- No browser editor: the server only serves whatever files you put in the
  `--static` directory; the editor page itself is not part of the package.
- No sound-card output: audio goes only to the binary stream given to the
  engine (standard output for the `sigourney` command).